"""Read models handed to the CRUD surface."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from cookdex.domain.model import ExtractionResult, Ingredient, IngestionStatus


@dataclass(frozen=True, slots=True)
class RecipeSummary:
    id: UUID
    name: str
    cookbook_title: str
    page_number: int


@dataclass(frozen=True, slots=True)
class IngredientSummary:
    id: UUID
    name: str
    aliases: tuple[str, ...]
    recipe_count: int
    available_months: tuple[int, ...]

    @classmethod
    def of(cls, ingredient: Ingredient, recipe_count: int) -> IngredientSummary:
        return cls(
            id=ingredient.id,
            name=ingredient.name,
            aliases=ingredient.sorted_aliases,
            recipe_count=recipe_count,
            available_months=ingredient.available_months,
        )


@dataclass(frozen=True, slots=True)
class IngredientDetail:
    id: UUID
    name: str
    aliases: tuple[str, ...]
    recipe_count: int
    available_months: tuple[int, ...]
    created_at: datetime | None
    updated_at: datetime | None
    recipes: tuple[RecipeSummary, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class ResultView:
    ingredient: str
    recipe_name: str
    page_number: int
    confidence: float
    needs_review: bool

    @classmethod
    def of(cls, result: ExtractionResult) -> ResultView:
        return cls(
            ingredient=result.ingredient,
            recipe_name=result.recipe_name,
            page_number=result.page_number,
            confidence=result.confidence,
            needs_review=result.needs_review,
        )


@dataclass(frozen=True, slots=True)
class IngestionSnapshot:
    cookbook_id: UUID
    status: IngestionStatus
    error_message: str | None
    total_pages: int
    results: tuple[ResultView, ...] = field(default_factory=tuple)
