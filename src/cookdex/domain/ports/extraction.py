"""Port for the page extraction capability (OCR/vision)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from cookdex.domain.model import ExtractedEntry


@runtime_checkable
class PageExtractor(Protocol):
    """Read ``(ingredient, recipe, page, confidence)`` tuples off one index page image.

    Implementations may block for a long time and raise
    ``ExtractionFailedError`` when the page cannot be processed.
    """

    def extract(self, image_data: bytes, content_type: str) -> list[ExtractedEntry]: ...


__all__ = ["PageExtractor"]
