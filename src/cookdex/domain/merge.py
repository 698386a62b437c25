"""Consolidate duplicate ingredient identities into one target.

For each source, in the order given:

1. capture its primary name and aliases;
2. clear its aliases and flush the removal, so the unique alias rows are gone
   before the same names are inserted on the target;
3. add the primary name and every captured alias to the target, skipping the
   target's own name and aliases it already carries;
4. repoint recipe references from the source to the target, dropping the
   pairs the target already covers;
5. delete the source.

The whole merge is a single transaction. It holds the in-process locks of the
target and every source plus database row locks where supported. It also holds
the name-space lock, so an import confirmation never resolves a source that is
about to disappear.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from cookdex.domain.errors import InvalidArgumentError, NotFoundError
from cookdex.domain.locking import IdentityLocks
from cookdex.domain.model import utcnow

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from cookdex.domain.model import Clock, Ingredient
    from cookdex.domain.ports.persistence import IngredientRepository, RecipeRepository
    from cookdex.domain.ports.unit_of_work import UnitOfWorkFactory

log = getLogger(__name__)


def _absorb(target: Ingredient, name: str) -> bool:
    if name == target.name or name in target.aliases:
        return False
    target.add_alias(name)
    return True


@dataclass(slots=True)
class MergeEngine:
    unit_of_work_factory: UnitOfWorkFactory
    locks: IdentityLocks = field(default_factory=IdentityLocks)
    clock: Clock = utcnow

    def merge(self, target_id: UUID, source_ids: Iterable[UUID]) -> Ingredient:
        sources = list(dict.fromkeys(source_ids))
        if not sources:
            raise InvalidArgumentError("At least one source ingredient is required")

        with (
            self.locks.hold([target_id, *sources]),
            self.locks.claiming_names(),
            self.unit_of_work_factory() as uow,
        ):
            ingredients = uow.repositories.ingredients
            locked = ingredients.get_for_update([target_id, *sources])
            target = locked.get(target_id)
            if target is None:
                raise NotFoundError("Ingredient", target_id)
            for source_id in sources:
                if source_id not in locked:
                    raise NotFoundError("Ingredient", source_id)
            if target_id in sources:
                raise InvalidArgumentError("target in sources")

            for source_id in sources:
                self._merge_one(
                    target,
                    locked[source_id],
                    ingredients=ingredients,
                    recipes=uow.repositories.recipes,
                )

            target.touch(self.clock())
            uow.commit()

        log.info("Merged %s ingredient(s) into %r (%s)", len(sources), target.name, target.id)
        return target

    @staticmethod
    def _merge_one(
        target: Ingredient,
        source: Ingredient,
        *,
        ingredients: IngredientRepository,
        recipes: RecipeRepository,
    ) -> None:
        source_name = source.name
        source_aliases = source.clear_aliases()
        ingredients.flush()

        absorbed = [name for name in (source_name, *source_aliases) if _absorb(target, name)]
        ingredients.flush()

        moved = recipes.repoint_references(source.id, target.id)
        ingredients.remove(source)
        ingredients.flush()
        log.debug(
            "Merged %s into %s: aliases=%s, references=%s", source.id, target.id, absorbed, moved
        )
