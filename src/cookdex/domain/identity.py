"""Global uniqueness of primary names and aliases.

Primary names and aliases share one name space: a normalized string belongs to
at most one ingredient, either as its primary name or as one of its aliases.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cookdex.domain.naming import normalize_name

if TYPE_CHECKING:
    from uuid import UUID

    from cookdex.domain.ports.persistence import IngredientRepository


@dataclass(slots=True)
class IdentityIndex:
    """Availability queries over the ingredients visible in one unit of work."""

    ingredients: IngredientRepository

    def is_name_available(self, candidate: str, excluding_id: UUID | None = None) -> bool:
        """``candidate`` is not another ingredient's name nor anybody's alias."""
        name = normalize_name(candidate)
        owner = self.ingredients.name_owner(name)
        if owner is not None and owner != excluding_id:
            return False
        return self.ingredients.alias_owner(name) is None

    def is_alias_available(self, candidate: str, for_ingredient_id: UUID) -> bool:
        """``candidate`` is nobody's primary name and not another ingredient's alias."""
        alias = normalize_name(candidate)
        if self.ingredients.name_owner(alias) is not None:
            return False
        owner = self.ingredients.alias_owner(alias)
        return owner is None or owner == for_ingredient_id

    def owner_of(self, candidate: str) -> UUID | None:
        """Id of the ingredient owning ``candidate`` as name or alias, if any."""
        name = normalize_name(candidate)
        return self.ingredients.name_owner(name) or self.ingredients.alias_owner(name)
