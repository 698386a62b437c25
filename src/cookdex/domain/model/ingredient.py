"""Ingredient identities: canonical name, aliases and seasonal availability.

Cross-ingredient uniqueness (no alias equals any other ingredient's name or
alias) cannot be checked from a single aggregate; ``IdentityIndex`` owns it.
The aggregate only guards its own invariants: ``name`` is normalized,
``name`` is not one of its aliases, months are within 1-12.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from cookdex.domain.errors import AliasConflictError, InvalidArgumentError
from cookdex.domain.model.base import Entity
from cookdex.domain.model.enums import EntityType
from cookdex.domain.naming import normalize_name

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

MONTHS: range = range(1, 13)


@dataclass(eq=False, kw_only=True)
class IngredientAlias(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.INGREDIENT_ALIAS

    name: str
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        self.name = normalize_name(self.name)


@dataclass(eq=False)
class AvailableMonth:
    """Value row: an ingredient is in season during ``month``."""

    month: int


@dataclass(eq=False, kw_only=True)
class Ingredient(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.INGREDIENT

    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    _aliases: list[IngredientAlias] = field(default_factory=list["IngredientAlias"], repr=False)
    _months: list[AvailableMonth] = field(default_factory=list["AvailableMonth"], repr=False)

    def __post_init__(self) -> None:
        self.name = normalize_name(self.name)

    @property
    def aliases(self) -> frozenset[str]:
        return frozenset(alias.name for alias in self._aliases)

    @property
    def sorted_aliases(self) -> tuple[str, ...]:
        return tuple(sorted(self.aliases))

    @property
    def available_months(self) -> tuple[int, ...]:
        return tuple(sorted({row.month for row in self._months}))

    @property
    def identity_names(self) -> frozenset[str]:
        """Primary name plus every alias."""
        return self.aliases | {self.name}

    def has_alias(self, raw_name: str) -> bool:
        return normalize_name(raw_name) in self.aliases

    def is_available_in(self, month: int) -> bool:
        return month in self.available_months

    def rename(self, raw_name: str) -> None:
        name = normalize_name(raw_name)
        if name in self.aliases:
            raise AliasConflictError(name)
        self.name = name

    def add_alias(self, raw_name: str) -> IngredientAlias:
        name = normalize_name(raw_name)
        if name == self.name:
            raise AliasConflictError(name)
        for existing in self._aliases:
            if existing.name == name:
                return existing
        alias = IngredientAlias(name=name)
        self._aliases.append(alias)
        return alias

    def remove_alias(self, raw_name: str) -> None:
        name = normalize_name(raw_name)
        self._aliases[:] = [alias for alias in self._aliases if alias.name != name]

    def clear_aliases(self) -> tuple[str, ...]:
        """Drop every alias and return the names that were removed."""
        removed = self.sorted_aliases
        self._aliases.clear()
        return removed

    def set_available_months(self, months: Iterable[int]) -> None:
        wanted = set(months)
        invalid = sorted(month for month in wanted if month not in MONTHS)
        if invalid:
            raise InvalidArgumentError(
                f"availableMonths must contain values between 1 and 12, got {invalid}"
            )
        # diff-based so unchanged rows are kept and no primary key is re-inserted
        self._months[:] = [row for row in self._months if row.month in wanted]
        present = {row.month for row in self._months}
        for month in sorted(wanted - present):
            self._months.append(AvailableMonth(month))

    def touch(self, now: datetime) -> None:
        if self.created_at is None:
            self.created_at = now
        self.updated_at = now
