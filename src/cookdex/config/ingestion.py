"""Ingestion worker defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import ConfigurationError

DEFAULT_REVIEW_THRESHOLD = 0.80
DEFAULT_INGEST_WORKERS = 2


@dataclass(frozen=True, slots=True)
class IngestionConfig:
    review_threshold: float = DEFAULT_REVIEW_THRESHOLD
    max_workers: int = DEFAULT_INGEST_WORKERS


def get_ingestion_config() -> IngestionConfig:
    raw_workers = os.getenv("COOKDEX_INGEST_WORKERS")
    if raw_workers is None or not raw_workers.strip():
        return IngestionConfig()
    try:
        max_workers = int(raw_workers)
    except ValueError as exc:
        raise ConfigurationError(
            f"COOKDEX_INGEST_WORKERS must be an integer, got {raw_workers!r}"
        ) from exc
    if max_workers < 1:
        raise ConfigurationError("COOKDEX_INGEST_WORKERS must be at least 1")
    return IngestionConfig(max_workers=max_workers)
