"""Search criteria and paging for ingredient listings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from cookdex.domain.errors import InvalidArgumentError
from cookdex.domain.model import MONTHS

if TYPE_CHECKING:
    from uuid import UUID

    from cookdex.domain.views import IngredientSummary

DEFAULT_PAGE_SIZE: Final[int] = 20
MAX_PAGE_SIZE: Final[int] = 100


@dataclass(frozen=True, slots=True)
class IngredientFilter:
    """Filters applied inside the query, before the page is cut.

    ``query`` matches as a prefix against primary names and aliases.
    ``cursor`` is the id of the last ingredient of the previous page; pages
    are ordered by primary name.
    """

    query: str | None = None
    min_recipe_count: int | None = None
    has_aliases: bool | None = None
    available_in_month: int | None = None
    cursor: UUID | None = None
    limit: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise InvalidArgumentError("limit must be positive")
        if self.min_recipe_count is not None and self.min_recipe_count < 0:
            raise InvalidArgumentError("min_recipe_count must not be negative")
        if self.available_in_month is not None and self.available_in_month not in MONTHS:
            raise InvalidArgumentError("available_in_month must be between 1 and 12")

    @property
    def page_size(self) -> int:
        return min(self.limit, MAX_PAGE_SIZE)

    @property
    def prefix(self) -> str | None:
        if self.query is None:
            return None
        stripped = self.query.lower().strip()
        return stripped or None


@dataclass(frozen=True, slots=True)
class IngredientPage:
    items: list[IngredientSummary] = field(default_factory=list["IngredientSummary"])
    next_cursor: UUID | None = None
    has_more: bool = False
