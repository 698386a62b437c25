"""Canonical form for ingredient names and aliases."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cookdex.domain.errors import InvalidNameError

if TYPE_CHECKING:
    from collections.abc import Iterable


def normalize_name(raw: str | None) -> str:
    """Lower-case ``raw`` and strip surrounding whitespace.

    Internal whitespace is preserved, so ``"  Brown  Sugar "`` becomes
    ``"brown  sugar"``. The function is idempotent.
    """

    if raw is None:
        raise InvalidNameError("Ingredient name cannot be null")
    normalized = raw.lower().strip()
    if not normalized:
        raise InvalidNameError("Ingredient name cannot be empty")
    return normalized


def normalize_names(raw_names: Iterable[str | None]) -> set[str]:
    """Normalize every entry, collapsing duplicates."""

    return {normalize_name(raw) for raw in raw_names}
