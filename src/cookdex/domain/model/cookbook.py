"""Cookbooks, their scanned index pages and pending extraction results.

The cookbook row carries the persisted half of an ingestion job
(``ingestion_status`` and ``ingestion_error``). Status transitions are made
through the cookbook repository's compare-and-set, never by assigning the
attributes on a loaded instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Final

from cookdex.domain.errors import InvalidArgumentError
from cookdex.domain.model.base import Entity
from cookdex.domain.model.enums import EntityType, IngestionStatus

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

REVIEW_CONFIDENCE_THRESHOLD: Final[float] = 0.80
ALLOWED_CONTENT_TYPES: Final[frozenset[str]] = frozenset({"image/jpeg", "image/png"})


@dataclass(eq=False, kw_only=True)
class Cookbook(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.COOKBOOK

    title: str
    author: str | None = None
    ingestion_status: IngestionStatus = IngestionStatus.NONE
    ingestion_error: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        title = self.title.strip() if self.title else ""
        if not title:
            raise InvalidArgumentError("Cookbook title cannot be empty")
        self.title = title


def validate_content_type(content_type: str | None) -> str:
    if content_type is None or content_type not in ALLOWED_CONTENT_TYPES:
        raise InvalidArgumentError("Content type must be image/jpeg or image/png")
    return content_type


@dataclass(eq=False, kw_only=True)
class IndexPage(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.INDEX_PAGE

    cookbook_id: UUID
    page_order: int
    image_data: bytes
    content_type: str
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        self.content_type = validate_content_type(self.content_type)


@dataclass(frozen=True, slots=True)
class ExtractedEntry:
    """One ``(ingredient, recipe, page)`` tuple read off an index page."""

    ingredient: str
    recipe_name: str
    page_number: int
    confidence: float

    @property
    def needs_review(self) -> bool:
        return self.confidence < REVIEW_CONFIDENCE_THRESHOLD


@dataclass(eq=False, kw_only=True)
class ExtractionResult(Entity):
    """Persisted extraction output awaiting import confirmation."""

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.EXTRACTION_RESULT

    cookbook_id: UUID
    ingredient: str
    recipe_name: str
    page_number: int
    confidence: float
    needs_review: bool
    source_page: int = 0
    entry_index: int = 0
    created_at: datetime | None = None

    @classmethod
    def from_entry(
        cls,
        entry: ExtractedEntry,
        *,
        cookbook_id: UUID,
        source_page: int,
        entry_index: int,
        created_at: datetime | None = None,
        review_threshold: float = REVIEW_CONFIDENCE_THRESHOLD,
    ) -> ExtractionResult:
        return cls(
            cookbook_id=cookbook_id,
            ingredient=entry.ingredient,
            recipe_name=entry.recipe_name,
            page_number=entry.page_number,
            confidence=entry.confidence,
            needs_review=entry.confidence < review_threshold,
            source_page=source_page,
            entry_index=entry_index,
            created_at=created_at,
        )
