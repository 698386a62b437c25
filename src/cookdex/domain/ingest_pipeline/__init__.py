"""Asynchronous extraction of cookbook index pages and import confirmation."""

from __future__ import annotations

from .confirmation import ConfirmedEntry, ImportSummary, confirm_import
from .dispatch import IngestionDispatcher
from .gate import JobStatusGate
from .runner import IngestionPipeline, IngestionReport, PageError

__all__ = [
    "ConfirmedEntry",
    "ImportSummary",
    "IngestionDispatcher",
    "IngestionPipeline",
    "IngestionReport",
    "JobStatusGate",
    "PageError",
    "confirm_import",
]
