"""Vision extraction service configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

DEFAULT_VISION_BASE_URL = "https://api.openai.com/v1"
DEFAULT_VISION_MODEL = "gpt-4o-mini"
VISION_TIMEOUT_SECONDS = 120.0


@dataclass(frozen=True)
class VisionConfig:
    """Holds the credentials and model of the page extraction service."""

    api_key: str
    model: str
    resilience: ResilienceConfig


def get_vision_config(*, resilience: ResilienceConfig | None = None) -> VisionConfig:
    values = require_env_vars(("COOKDEX_VISION_API_KEY",))
    model = os.getenv("COOKDEX_VISION_MODEL") or DEFAULT_VISION_MODEL
    base_url = os.getenv("COOKDEX_VISION_BASE_URL") or DEFAULT_VISION_BASE_URL
    return VisionConfig(
        api_key=values["COOKDEX_VISION_API_KEY"],
        model=model,
        resilience=resilience
        or ResilienceConfig(
            name="vision",
            base_url=base_url,
            timeout_seconds=VISION_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        ),
    )
