"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


def _present(value: str | None) -> bool:
    return value is not None and bool(value.strip())


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise listing every missing/blank one."""

    values = {name: os.getenv(name) for name in names}
    missing = sorted(name for name, value in values.items() if not _present(value))
    if missing:
        raise MissingConfigurationError(f"Missing configuration for: {', '.join(missing)}")
    return {name: value for name, value in values.items() if value is not None}


def require_env_var(name: str) -> str:
    return require_env_vars((name,))[name]
