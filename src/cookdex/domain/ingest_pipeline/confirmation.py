"""Turn reviewed extraction results into recipes and ingredients."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from cookdex.domain.errors import InvalidArgumentError
from cookdex.domain.ingest_pipeline.gate import clear_status
from cookdex.domain.locking import IdentityLocks
from cookdex.domain.model import Ingredient, Recipe, utcnow
from cookdex.domain.naming import normalize_name

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID

    from cookdex.domain.model import Clock
    from cookdex.domain.ports.persistence import IngredientRepository
    from cookdex.domain.ports.unit_of_work import UnitOfWorkFactory

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConfirmedEntry:
    recipe_name: str
    page_number: int
    ingredient: str
    keep: bool = True


@dataclass(frozen=True, slots=True)
class ImportSummary:
    recipes_created: int
    ingredients_created: int
    references_added: int


type RecipeKey = tuple[str, int]


def _group_kept(entries: Iterable[ConfirmedEntry]) -> dict[RecipeKey, list[str]]:
    grouped: dict[RecipeKey, list[str]] = {}
    for entry in entries:
        if not entry.keep:
            continue
        recipe_name = entry.recipe_name.strip() if entry.recipe_name else ""
        if not recipe_name:
            raise InvalidArgumentError("Recipe name cannot be empty")
        grouped.setdefault((recipe_name, entry.page_number), []).append(
            normalize_name(entry.ingredient)
        )
    return grouped


class _IngredientResolver:
    """Resolve names by primary name, then alias, creating what is missing."""

    def __init__(self, ingredients: IngredientRepository, now: datetime) -> None:
        self._ingredients = ingredients
        self._now = now
        self._resolved: dict[str, Ingredient] = {}
        self.created = 0

    def resolve(self, name: str) -> Ingredient:
        cached = self._resolved.get(name)
        if cached is not None:
            return cached
        ingredient = self._ingredients.find_by_name(name) or self._ingredients.find_by_alias(name)
        if ingredient is None:
            ingredient = Ingredient(name=name, created_at=self._now, updated_at=self._now)
            self._ingredients.add(ingredient)
            self.created += 1
        self._resolved[name] = ingredient
        return ingredient


def confirm_import(
    cookbook_id: UUID,
    entries: Iterable[ConfirmedEntry],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    locks: IdentityLocks | None = None,
    clock: Clock = utcnow,
) -> ImportSummary:
    """Materialize the kept entries and close the cookbook's ingestion job.

    Entries with ``keep=False`` are discarded. The rest are grouped by
    ``(recipe_name, page_number)``. Recipes, ingredients and references are
    written, the cookbook's results deleted and its status reset to NONE in
    one transaction. The reset is a compare-and-set against the status read at
    the start, so a run that began in between makes the whole import fail with
    ``AlreadyRunningError``.
    """

    grouped = _group_kept(entries)
    effective_locks = locks or IdentityLocks()
    now = clock()

    with effective_locks.claiming_names(), unit_of_work_factory() as uow:
        repositories = uow.repositories
        clear_status(repositories.cookbooks, cookbook_id)

        resolver = _IngredientResolver(repositories.ingredients, now)
        recipes_created = 0
        references_added = 0
        for (recipe_name, page_number), ingredient_names in grouped.items():
            recipe = repositories.recipes.find(cookbook_id, recipe_name, page_number)
            if recipe is None:
                recipe = Recipe(
                    cookbook_id=cookbook_id,
                    name=recipe_name,
                    page_number=page_number,
                    created_at=now,
                )
                repositories.recipes.add(recipe)
                recipes_created += 1
            for name in ingredient_names:
                if recipe.add_ingredient(resolver.resolve(name)):
                    references_added += 1

        repositories.results.delete_results(cookbook_id)
        uow.commit()

    summary = ImportSummary(
        recipes_created=recipes_created,
        ingredients_created=resolver.created,
        references_added=references_added,
    )
    log.info(
        "Confirmed import for cookbook %s: recipes=%s, ingredients=%s, references=%s",
        cookbook_id,
        summary.recipes_created,
        summary.ingredients_created,
        summary.references_added,
    )
    return summary
