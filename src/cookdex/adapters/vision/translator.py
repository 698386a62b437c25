"""Translate vision payloads into domain extraction entries."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from cookdex.domain.model import ExtractedEntry

if TYPE_CHECKING:
    from .schema import ExtractionPayload, RecipeEntryPayload

log = getLogger(__name__)


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def parse_entry(payload: RecipeEntryPayload) -> ExtractedEntry | None:
    if not payload.is_complete:
        return None
    assert payload.ingredient is not None
    assert payload.recipe_name is not None
    assert payload.page_number is not None
    return ExtractedEntry(
        ingredient=payload.ingredient,
        recipe_name=payload.recipe_name,
        page_number=payload.page_number,
        confidence=_clamp(payload.confidence),
    )


def parse_entries(payload: ExtractionPayload) -> list[ExtractedEntry]:
    entries: list[ExtractedEntry] = []
    skipped = 0
    for item in payload.recipes:
        entry = parse_entry(item)
        if entry is None:
            skipped += 1
            continue
        entries.append(entry)
    if skipped:
        log.warning("Skipped %s incomplete entries from vision response", skipped)
    return entries
