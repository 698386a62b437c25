"""Ports for persisting domain aggregates."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from cookdex.domain.model import Cookbook, ExtractionResult, IndexPage, Ingredient, Recipe

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from cookdex.domain.model import IngestionStatus
    from cookdex.domain.queries import IngredientFilter
    from cookdex.domain.views import RecipeSummary


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class IngredientRepository(Repository[Ingredient], Protocol):
    """Persistence contract for ingredient identities."""

    def get(self, ingredient_id: UUID) -> Ingredient | None: ...

    def get_for_update(self, ingredient_ids: Iterable[UUID]) -> dict[UUID, Ingredient]:
        """Load ingredients holding a row lock until the transaction ends."""
        ...

    def find_by_name(self, name: str) -> Ingredient | None: ...

    def find_by_alias(self, alias: str) -> Ingredient | None: ...

    def name_owner(self, name: str) -> UUID | None:
        """Return the id of the ingredient whose primary name is ``name``."""
        ...

    def alias_owner(self, alias: str) -> UUID | None:
        """Return the id of the ingredient that carries ``alias``."""
        ...

    def remove(self, ingredient: Ingredient) -> None: ...

    def flush(self) -> None:
        """Push pending identity changes so later statements observe them."""
        ...

    def search(self, criteria: IngredientFilter) -> list[tuple[Ingredient, int]]:
        """Return up to ``criteria.page_size + 1`` ingredients with their recipe counts."""
        ...

    def aliases_by_prefix(self, prefix: str, *, limit: int) -> list[str]: ...


@runtime_checkable
class RecipeRepository(Repository[Recipe], Protocol):
    """Persistence contract for recipes and their ingredient references."""

    def find(self, cookbook_id: UUID, name: str, page_number: int) -> Recipe | None: ...

    def count_recipes(self, ingredient_id: UUID) -> int: ...

    def repoint_references(self, from_id: UUID, to_id: UUID) -> int:
        """Move every reference from ``from_id`` to ``to_id`` without duplicating pairs.

        Returns the number of references that were rewritten.
        """
        ...

    def preview_for_ingredient(self, ingredient_id: UUID, *, limit: int) -> list[RecipeSummary]: ...


@runtime_checkable
class CookbookRepository(Repository[Cookbook], Protocol):
    """Persistence contract for cookbooks and their ingestion status."""

    def get(self, cookbook_id: UUID) -> Cookbook | None: ...

    def get_status(self, cookbook_id: UUID) -> tuple[IngestionStatus, str | None] | None:
        """Read the current status straight from storage, bypassing identity maps."""
        ...

    def compare_and_set_status(
        self,
        cookbook_id: UUID,
        expected: IngestionStatus,
        next_status: IngestionStatus,
    ) -> bool: ...

    def set_terminal_status(
        self,
        cookbook_id: UUID,
        status: IngestionStatus,
        message: str | None,
    ) -> None: ...


@runtime_checkable
class PageStore(Repository[IndexPage], Protocol):
    """Index page images of a cookbook."""

    def list_pages(self, cookbook_id: UUID) -> list[IndexPage]:
        """Pages ordered by ``page_order``."""
        ...

    def has_pages(self, cookbook_id: UUID) -> bool: ...

    def count_pages(self, cookbook_id: UUID) -> int: ...

    def next_page_order(self, cookbook_id: UUID) -> int: ...


@runtime_checkable
class ResultStore(Protocol):
    """Pending extraction results of a cookbook, in insertion order."""

    def delete_results(self, cookbook_id: UUID) -> int: ...

    def append_result(self, result: ExtractionResult) -> None: ...

    def list_results(self, cookbook_id: UUID) -> list[ExtractionResult]: ...
