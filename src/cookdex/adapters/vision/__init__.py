"""Public interface for the vision page extraction adapter."""

from __future__ import annotations

from .client import EXTRACTION_PROMPT, VisionPageExtractor, image_to_data_url, strip_code_fence
from .schema import ChatCompletionResponse, ExtractionPayload, RecipeEntryPayload
from .translator import parse_entries, parse_entry

__all__ = [
    "EXTRACTION_PROMPT",
    "ChatCompletionResponse",
    "ExtractionPayload",
    "RecipeEntryPayload",
    "VisionPageExtractor",
    "image_to_data_url",
    "parse_entries",
    "parse_entry",
    "strip_code_fence",
]
