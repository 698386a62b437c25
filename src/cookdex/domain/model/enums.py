"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    INGREDIENT = "ingredient"
    INGREDIENT_ALIAS = "ingredient_alias"
    RECIPE = "recipe"
    COOKBOOK = "cookbook"
    INDEX_PAGE = "index_page"
    EXTRACTION_RESULT = "extraction_result"


class IngestionStatus(StrEnum):
    """Lifecycle of a cookbook's ingestion job.

    NONE -> PROCESSING -> {COMPLETED, COMPLETED_WITH_ERRORS, FAILED} -> NONE
    """

    NONE = "none"
    PROCESSING = "processing"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[IngestionStatus] = frozenset(
    {
        IngestionStatus.COMPLETED,
        IngestionStatus.COMPLETED_WITH_ERRORS,
        IngestionStatus.FAILED,
    }
)
