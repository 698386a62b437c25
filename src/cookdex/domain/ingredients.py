"""Ingredient identity edits, lookups and the reference-guarded delete."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from cookdex.domain.errors import (
    AliasConflictError,
    HasReferencesError,
    InvalidArgumentError,
    NameConflictError,
    NotFoundError,
)
from cookdex.domain.identity import IdentityIndex
from cookdex.domain.locking import IdentityLocks
from cookdex.domain.model import MONTHS, Ingredient, utcnow
from cookdex.domain.naming import normalize_name, normalize_names
from cookdex.domain.queries import IngredientFilter, IngredientPage
from cookdex.domain.views import IngredientDetail, IngredientSummary

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from cookdex.domain.model import Clock
    from cookdex.domain.ports.unit_of_work import CatalogUnitOfWork, UnitOfWorkFactory

log = getLogger(__name__)

RECIPE_PREVIEW_SIZE: Final[int] = 5
DEFAULT_ALIAS_SUGGESTIONS: Final[int] = 10


def _load(uow: CatalogUnitOfWork, ingredient_id: UUID) -> Ingredient:
    ingredient = uow.repositories.ingredients.get(ingredient_id)
    if ingredient is None:
        raise NotFoundError("Ingredient", ingredient_id)
    return ingredient


def _validate_months(months: Iterable[int]) -> set[int]:
    wanted = set(months)
    if any(month not in MONTHS for month in wanted):
        raise InvalidArgumentError("availableMonths must contain values between 1 and 12")
    return wanted


def _check_name(index: IdentityIndex, ingredient: Ingredient, name: str) -> None:
    if name != ingredient.name and not index.is_name_available(name, ingredient.id):
        raise NameConflictError(name)


def _check_aliases(
    index: IdentityIndex,
    ingredient: Ingredient,
    aliases: set[str],
    *,
    primary_name: str,
) -> None:
    for alias in sorted(aliases - ingredient.aliases):
        if alias == primary_name or not index.is_alias_available(alias, ingredient.id):
            raise AliasConflictError(alias)
    if primary_name in aliases:
        raise AliasConflictError(primary_name)


def _replace_aliases(ingredient: Ingredient, aliases: set[str]) -> None:
    current = ingredient.aliases
    for stale in sorted(current - aliases):
        ingredient.remove_alias(stale)
    for fresh in sorted(aliases - current):
        ingredient.add_alias(fresh)


@dataclass(slots=True)
class IngredientStore:
    """Transactional identity operations on single ingredients.

    Every mutating call validates the complete target state before touching
    the aggregate and commits once, so a rejected edit leaves storage as it
    was.
    """

    unit_of_work_factory: UnitOfWorkFactory
    locks: IdentityLocks = field(default_factory=IdentityLocks)
    clock: Clock = utcnow

    def create(
        self,
        name: str,
        *,
        aliases: Iterable[str] = (),
        available_months: Iterable[int] = (),
    ) -> Ingredient:
        normalized = normalize_name(name)
        wanted_aliases = normalize_names(aliases)
        months = _validate_months(available_months)
        with self.locks.claiming_names(), self.unit_of_work_factory() as uow:
            index = IdentityIndex(uow.repositories.ingredients)
            if not index.is_name_available(normalized):
                raise NameConflictError(normalized)
            ingredient = Ingredient(name=normalized)
            _check_aliases(index, ingredient, wanted_aliases, primary_name=normalized)
            _replace_aliases(ingredient, wanted_aliases)
            ingredient.set_available_months(months)
            ingredient.touch(self.clock())
            uow.repositories.ingredients.add(ingredient)
            uow.commit()
        log.info("Created ingredient %r (%s)", ingredient.name, ingredient.id)
        return ingredient

    def rename(self, ingredient_id: UUID, new_name: str) -> Ingredient:
        name = normalize_name(new_name)
        with (
            self.locks.hold([ingredient_id]),
            self.locks.claiming_names(),
            self.unit_of_work_factory() as uow,
        ):
            ingredient = _load(uow, ingredient_id)
            if name == ingredient.name:
                return ingredient
            _check_name(IdentityIndex(uow.repositories.ingredients), ingredient, name)
            ingredient.rename(name)
            ingredient.touch(self.clock())
            uow.commit()
        return ingredient

    def set_aliases(self, ingredient_id: UUID, aliases: Iterable[str]) -> Ingredient:
        wanted = normalize_names(aliases)
        with (
            self.locks.hold([ingredient_id]),
            self.locks.claiming_names(),
            self.unit_of_work_factory() as uow,
        ):
            ingredient = _load(uow, ingredient_id)
            index = IdentityIndex(uow.repositories.ingredients)
            _check_aliases(index, ingredient, wanted, primary_name=ingredient.name)
            _replace_aliases(ingredient, wanted)
            ingredient.touch(self.clock())
            uow.commit()
        return ingredient

    def set_available_months(self, ingredient_id: UUID, months: Iterable[int]) -> Ingredient:
        wanted = _validate_months(months)
        with self.locks.hold([ingredient_id]), self.unit_of_work_factory() as uow:
            ingredient = _load(uow, ingredient_id)
            ingredient.set_available_months(wanted)
            ingredient.touch(self.clock())
            uow.commit()
        return ingredient

    def update_ingredient(
        self,
        ingredient_id: UUID,
        *,
        name: str,
        aliases: Iterable[str] = (),
        available_months: Iterable[int] = (),
    ) -> IngredientDetail:
        """Replace name, aliases and months together, or change nothing."""

        normalized = normalize_name(name)
        wanted_aliases = normalize_names(aliases)
        months = _validate_months(available_months)
        with (
            self.locks.hold([ingredient_id]),
            self.locks.claiming_names(),
            self.unit_of_work_factory() as uow,
        ):
            ingredient = _load(uow, ingredient_id)
            index = IdentityIndex(uow.repositories.ingredients)
            _check_name(index, ingredient, normalized)
            _check_aliases(index, ingredient, wanted_aliases, primary_name=normalized)

            for stale in sorted(ingredient.aliases - wanted_aliases):
                ingredient.remove_alias(stale)
            ingredient.rename(normalized)
            _replace_aliases(ingredient, wanted_aliases)
            ingredient.set_available_months(months)
            ingredient.touch(self.clock())
            uow.commit()
            detail = self._detail(uow, ingredient)
        log.info("Updated ingredient %r (%s)", ingredient.name, ingredient.id)
        return detail

    def count_recipes(self, ingredient_id: UUID) -> int:
        with self.unit_of_work_factory() as uow:
            _load(uow, ingredient_id)
            return uow.repositories.recipes.count_recipes(ingredient_id)

    def delete(self, ingredient_id: UUID) -> None:
        with (
            self.locks.hold([ingredient_id]),
            self.locks.claiming_names(),
            self.unit_of_work_factory() as uow,
        ):
            ingredient = _load(uow, ingredient_id)
            recipe_count = uow.repositories.recipes.count_recipes(ingredient_id)
            if recipe_count > 0:
                raise HasReferencesError(recipe_count)
            uow.repositories.ingredients.remove(ingredient)
            uow.commit()
        log.info("Deleted ingredient %r (%s)", ingredient.name, ingredient_id)

    def detail(self, ingredient_id: UUID) -> IngredientDetail:
        with self.unit_of_work_factory() as uow:
            return self._detail(uow, _load(uow, ingredient_id))

    def find(self, raw_name: str) -> IngredientDetail | None:
        """Resolve ``raw_name`` against primary names, then aliases."""
        name = normalize_name(raw_name)
        with self.unit_of_work_factory() as uow:
            repository = uow.repositories.ingredients
            ingredient = repository.find_by_name(name) or repository.find_by_alias(name)
            if ingredient is None:
                return None
            return self._detail(uow, ingredient)

    def search(self, criteria: IngredientFilter | None = None) -> IngredientPage:
        effective = criteria or IngredientFilter()
        with self.unit_of_work_factory() as uow:
            rows = uow.repositories.ingredients.search(effective)
            page_size = effective.page_size
            has_more = len(rows) > page_size
            items = [
                IngredientSummary.of(ingredient, count) for ingredient, count in rows[:page_size]
            ]
        next_cursor = items[-1].id if has_more and items else None
        return IngredientPage(items=items, next_cursor=next_cursor, has_more=has_more)

    def aliases_by_prefix(
        self,
        prefix: str,
        *,
        limit: int = DEFAULT_ALIAS_SUGGESTIONS,
    ) -> list[str]:
        stripped = prefix.lower().strip() if prefix else ""
        if not stripped:
            return []
        with self.unit_of_work_factory() as uow:
            return uow.repositories.ingredients.aliases_by_prefix(stripped, limit=limit)

    @staticmethod
    def _detail(uow: CatalogUnitOfWork, ingredient: Ingredient) -> IngredientDetail:
        recipes = uow.repositories.recipes
        return IngredientDetail(
            id=ingredient.id,
            name=ingredient.name,
            aliases=ingredient.sorted_aliases,
            recipe_count=recipes.count_recipes(ingredient.id),
            available_months=ingredient.available_months,
            created_at=ingredient.created_at,
            updated_at=ingredient.updated_at,
            recipes=tuple(
                recipes.preview_for_ingredient(ingredient.id, limit=RECIPE_PREVIEW_SIZE)
            ),
        )
