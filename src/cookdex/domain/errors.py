"""Domain error taxonomy.

Callers map these onto their own surface (HTTP status, CLI exit code):

- ``InvalidArgumentError``: bad input shape, rejected before any mutation.
- ``NotFoundError``: a referenced ingredient or cookbook does not exist.
- ``ConflictError``: name/alias collision, reference guard or a job already
  running; retryable once the caller inspected current state.
- ``ExtractionFailedError``: a single page could not be extracted. The
  ingestion pipeline recovers from it locally.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class CookdexError(Exception):
    """Base class for all domain errors."""


class InvalidArgumentError(CookdexError, ValueError):
    """Raised when input is malformed."""


class InvalidNameError(InvalidArgumentError):
    """Raised when a name is absent or blank after normalization."""


class NotFoundError(CookdexError, LookupError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, kind: str, entity_id: UUID | str) -> None:
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class ConflictError(CookdexError):
    """Raised when an operation collides with existing state."""


class NameConflictError(ConflictError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Name '{name}' is already in use by another ingredient or alias")
        self.name = name


class AliasConflictError(ConflictError):
    def __init__(self, alias: str) -> None:
        super().__init__(f"Alias '{alias}' is already in use")
        self.alias = alias


class HasReferencesError(ConflictError):
    def __init__(self, recipe_count: int) -> None:
        super().__init__(f"Cannot delete ingredient with {recipe_count} recipe associations")
        self.recipe_count = recipe_count


class AlreadyRunningError(ConflictError):
    def __init__(self, cookbook_id: UUID) -> None:
        super().__init__(f"Ingestion is already in progress for cookbook {cookbook_id}")
        self.cookbook_id = cookbook_id


class ResultsPendingError(ConflictError):
    """Raised when a new run is requested while previous results await confirmation."""

    def __init__(self, cookbook_id: UUID) -> None:
        super().__init__(
            f"Ingestion results for cookbook {cookbook_id} must be confirmed before a new run"
        )
        self.cookbook_id = cookbook_id


class NoPagesError(InvalidArgumentError):
    def __init__(self, cookbook_id: UUID) -> None:
        super().__init__(f"No index pages found for cookbook {cookbook_id}")
        self.cookbook_id = cookbook_id


class ExtractionFailedError(CookdexError):
    """Raised by page extractors when one page cannot be processed."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
