"""Recipes found in a cookbook index and the ingredients they reference."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from cookdex.domain.model.base import Entity
from cookdex.domain.model.enums import EntityType

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from cookdex.domain.model.ingredient import Ingredient


@dataclass(eq=False, kw_only=True)
class Recipe(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.RECIPE

    cookbook_id: UUID
    name: str
    page_number: int
    created_at: datetime | None = None

    _ingredients: list[Ingredient] = field(default_factory=list["Ingredient"], repr=False)

    @property
    def ingredients(self) -> tuple[Ingredient, ...]:
        return tuple(self._ingredients)

    @property
    def ingredient_ids(self) -> frozenset[UUID]:
        return frozenset(ingredient.id for ingredient in self._ingredients)

    def references(self, ingredient: Ingredient) -> bool:
        return ingredient.id in self.ingredient_ids

    def add_ingredient(self, ingredient: Ingredient) -> bool:
        """Attach ``ingredient`` unless already referenced. Returns whether it was added."""
        if self.references(ingredient):
            return False
        self._ingredients.append(ingredient)
        return True
