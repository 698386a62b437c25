"""Public domain model surface."""

from __future__ import annotations

from cookdex.domain.model.base import Clock, Entity, new_id, utcnow
from cookdex.domain.model.cookbook import (
    ALLOWED_CONTENT_TYPES,
    REVIEW_CONFIDENCE_THRESHOLD,
    Cookbook,
    ExtractedEntry,
    ExtractionResult,
    IndexPage,
    validate_content_type,
)
from cookdex.domain.model.enums import TERMINAL_STATUSES, EntityType, IngestionStatus
from cookdex.domain.model.ingredient import MONTHS, AvailableMonth, Ingredient, IngredientAlias
from cookdex.domain.model.recipe import Recipe

__all__ = [  # noqa: RUF022
    # base
    "Clock",
    "Entity",
    "new_id",
    "utcnow",
    # ingredients
    "Ingredient",
    "IngredientAlias",
    "AvailableMonth",
    "MONTHS",
    # recipes
    "Recipe",
    # cookbooks and ingestion
    "Cookbook",
    "IndexPage",
    "ExtractedEntry",
    "ExtractionResult",
    "ALLOWED_CONTENT_TYPES",
    "REVIEW_CONFIDENCE_THRESHOLD",
    "validate_content_type",
    # enums
    "EntityType",
    "IngestionStatus",
    "TERMINAL_STATUSES",
]
