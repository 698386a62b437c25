"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryablePayloadError, RetryPolicy
from .ingestion import IngestionConfig, get_ingestion_config
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .vision import VisionConfig, get_vision_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "IngestionConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "RetryablePayloadError",
    "StorageConfig",
    "VisionConfig",
    "configure_logging",
    "get_database_config",
    "get_ingestion_config",
    "get_storage_config",
    "get_vision_config",
    "require_env_var",
    "require_env_vars",
]
