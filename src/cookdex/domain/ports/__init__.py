"""Domain port definitions for adapters."""

from __future__ import annotations

from .extraction import PageExtractor
from .persistence import (
    CookbookRepository,
    IngredientRepository,
    PageStore,
    RecipeRepository,
    Repository,
    ResultStore,
)
from .unit_of_work import (
    CatalogRepositories,
    CatalogUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
    UnitOfWorkFactory,
)

__all__ = [
    "CatalogRepositories",
    "CatalogUnitOfWork",
    "CookbookRepository",
    "IngredientRepository",
    "PageExtractor",
    "PageStore",
    "RecipeRepository",
    "Repository",
    "RepositoryCollection",
    "ResultStore",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
