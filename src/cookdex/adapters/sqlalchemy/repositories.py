"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import and_, delete, distinct, exists, func, inspect, or_, select, update

from cookdex.adapters.sqlalchemy.mappings import (
    cookbook_table,
    extraction_result_table,
    index_page_table,
    ingredient_alias_table,
    ingredient_available_month_table,
    ingredient_table,
    recipe_ingredient_table,
    recipe_table,
)
from cookdex.domain.model import (
    Cookbook,
    ExtractionResult,
    IndexPage,
    Ingredient,
    IngestionStatus,
    Recipe,
)
from cookdex.domain.views import RecipeSummary

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

    from cookdex.domain.queries import IngredientFilter


def _rowcount(result: object) -> int:
    return cast("CursorResult[object]", result).rowcount


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlAlchemyIngredientRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Ingredient) -> None:
        self.session.add(entity)

    def get(self, ingredient_id: UUID) -> Ingredient | None:
        return self.session.get(Ingredient, ingredient_id)

    def get_for_update(self, ingredient_ids: Iterable[UUID]) -> dict[UUID, Ingredient]:
        wanted = sorted(set(ingredient_ids))
        if not wanted:
            return {}
        # ordered by id, matching the in-process lock order
        stmt = (
            select(Ingredient)
            .where(ingredient_table.c.id.in_(wanted))
            .order_by(ingredient_table.c.id)
            .with_for_update()
        )
        return {ingredient.id: ingredient for ingredient in self.session.scalars(stmt)}

    def find_by_name(self, name: str) -> Ingredient | None:
        stmt = select(Ingredient).where(ingredient_table.c.name == name)
        return self.session.scalars(stmt).one_or_none()

    def find_by_alias(self, alias: str) -> Ingredient | None:
        owner = self.alias_owner(alias)
        return self.get(owner) if owner is not None else None

    def name_owner(self, name: str) -> UUID | None:
        stmt = select(ingredient_table.c.id).where(ingredient_table.c.name == name)
        return self.session.execute(stmt).scalar_one_or_none()

    def alias_owner(self, alias: str) -> UUID | None:
        stmt = select(ingredient_alias_table.c.ingredient_id).where(
            ingredient_alias_table.c.name == alias
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def remove(self, ingredient: Ingredient) -> None:
        self.session.delete(ingredient)

    def flush(self) -> None:
        self.session.flush()

    def search(self, criteria: IngredientFilter) -> list[tuple[Ingredient, int]]:
        recipe_count = func.count(distinct(recipe_ingredient_table.c.recipe_id)).label(
            "recipe_count"
        )
        stmt = (
            select(Ingredient, recipe_count)
            .select_from(ingredient_table)
            .outerjoin(
                recipe_ingredient_table,
                recipe_ingredient_table.c.ingredient_id == ingredient_table.c.id,
            )
            .group_by(ingredient_table.c.id)
            .order_by(ingredient_table.c.name)
            .limit(criteria.page_size + 1)
        )

        prefix = criteria.prefix
        if prefix is not None:
            pattern = f"{_escape_like(prefix)}%"
            alias_match = exists().where(
                and_(
                    ingredient_alias_table.c.ingredient_id == ingredient_table.c.id,
                    ingredient_alias_table.c.name.like(pattern, escape="\\"),
                )
            )
            stmt = stmt.where(or_(ingredient_table.c.name.like(pattern, escape="\\"), alias_match))

        if criteria.has_aliases is not None:
            has_alias = exists().where(
                ingredient_alias_table.c.ingredient_id == ingredient_table.c.id
            )
            stmt = stmt.where(has_alias if criteria.has_aliases else ~has_alias)

        if criteria.available_in_month is not None:
            stmt = stmt.where(
                exists().where(
                    and_(
                        ingredient_available_month_table.c.ingredient_id == ingredient_table.c.id,
                        ingredient_available_month_table.c.month == criteria.available_in_month,
                    )
                )
            )

        if criteria.cursor is not None:
            previous = ingredient_table.alias("previous")
            cursor_name = (
                select(previous.c.name).where(previous.c.id == criteria.cursor).scalar_subquery()
            )
            stmt = stmt.where(ingredient_table.c.name > cursor_name)

        if criteria.min_recipe_count:
            stmt = stmt.having(recipe_count >= criteria.min_recipe_count)

        return [(ingredient, int(count)) for ingredient, count in self.session.execute(stmt).all()]

    def aliases_by_prefix(self, prefix: str, *, limit: int) -> list[str]:
        stmt = (
            select(ingredient_alias_table.c.name)
            .where(ingredient_alias_table.c.name.like(f"{_escape_like(prefix)}%", escape="\\"))
            .order_by(ingredient_alias_table.c.name)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))


class SqlAlchemyRecipeRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Recipe) -> None:
        self.session.add(entity)

    def find(self, cookbook_id: UUID, name: str, page_number: int) -> Recipe | None:
        stmt = (
            select(Recipe)
            .where(recipe_table.c.cookbook_id == cookbook_id)
            .where(recipe_table.c.name == name)
            .where(recipe_table.c.page_number == page_number)
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    def count_recipes(self, ingredient_id: UUID) -> int:
        stmt = select(func.count(distinct(recipe_ingredient_table.c.recipe_id))).where(
            recipe_ingredient_table.c.ingredient_id == ingredient_id
        )
        return int(self.session.execute(stmt).scalar_one())

    def repoint_references(self, from_id: UUID, to_id: UUID) -> int:
        self.session.flush()
        target_refs = recipe_ingredient_table.alias("target_refs")
        drop_duplicates = delete(recipe_ingredient_table).where(
            recipe_ingredient_table.c.ingredient_id == from_id,
            exists().where(
                and_(
                    target_refs.c.recipe_id == recipe_ingredient_table.c.recipe_id,
                    target_refs.c.ingredient_id == to_id,
                )
            ),
        )
        repoint = (
            update(recipe_ingredient_table)
            .where(recipe_ingredient_table.c.ingredient_id == from_id)
            .values(ingredient_id=to_id)
        )
        dropped = _rowcount(self.session.execute(drop_duplicates))
        moved = _rowcount(self.session.execute(repoint))
        # loaded recipes still hold the old ingredient list
        for instance in list(self.session.identity_map.values()):
            if isinstance(instance, Recipe):
                self.session.expire(instance, ["_ingredients"])
        return dropped + moved

    def preview_for_ingredient(self, ingredient_id: UUID, *, limit: int) -> list[RecipeSummary]:
        stmt = (
            select(
                recipe_table.c.id,
                recipe_table.c.name,
                cookbook_table.c.title,
                recipe_table.c.page_number,
            )
            .join(recipe_ingredient_table, recipe_ingredient_table.c.recipe_id == recipe_table.c.id)
            .join(cookbook_table, cookbook_table.c.id == recipe_table.c.cookbook_id)
            .where(recipe_ingredient_table.c.ingredient_id == ingredient_id)
            .order_by(recipe_table.c.name, recipe_table.c.page_number)
            .limit(limit)
        )
        return [
            RecipeSummary(
                id=row.id,
                name=row.name,
                cookbook_title=row.title,
                page_number=row.page_number,
            )
            for row in self.session.execute(stmt)
        ]


class SqlAlchemyCookbookRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Cookbook) -> None:
        self.session.add(entity)

    def get(self, cookbook_id: UUID) -> Cookbook | None:
        return self.session.get(Cookbook, cookbook_id)

    def get_status(self, cookbook_id: UUID) -> tuple[IngestionStatus, str | None] | None:
        stmt = select(cookbook_table.c.ingestion_status, cookbook_table.c.ingestion_error).where(
            cookbook_table.c.id == cookbook_id
        )
        row = self.session.execute(stmt).one_or_none()
        if row is None:
            return None
        return IngestionStatus(row.ingestion_status), row.ingestion_error

    def compare_and_set_status(
        self,
        cookbook_id: UUID,
        expected: IngestionStatus,
        next_status: IngestionStatus,
    ) -> bool:
        stmt = (
            update(cookbook_table)
            .where(cookbook_table.c.id == cookbook_id)
            .where(cookbook_table.c.ingestion_status == expected)
            .values(ingestion_status=next_status, ingestion_error=None)
        )
        won = _rowcount(self.session.execute(stmt)) == 1
        self._expire(cookbook_id)
        return won

    def set_terminal_status(
        self,
        cookbook_id: UUID,
        status: IngestionStatus,
        message: str | None,
    ) -> None:
        stmt = (
            update(cookbook_table)
            .where(cookbook_table.c.id == cookbook_id)
            .values(ingestion_status=status, ingestion_error=message)
        )
        self.session.execute(stmt)
        self._expire(cookbook_id)

    def _expire(self, cookbook_id: UUID) -> None:
        key = inspect(Cookbook).identity_key_from_primary_key((cookbook_id,))
        loaded = self.session.identity_map.get(key)
        if loaded is not None:
            self.session.expire(loaded, ["ingestion_status", "ingestion_error"])


class SqlAlchemyPageStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: IndexPage) -> None:
        self.session.add(entity)

    def list_pages(self, cookbook_id: UUID) -> list[IndexPage]:
        stmt = (
            select(IndexPage)
            .where(index_page_table.c.cookbook_id == cookbook_id)
            .order_by(index_page_table.c.page_order, index_page_table.c.created_at)
        )
        return list(self.session.scalars(stmt))

    def has_pages(self, cookbook_id: UUID) -> bool:
        stmt = select(exists().where(index_page_table.c.cookbook_id == cookbook_id))
        return bool(self.session.execute(stmt).scalar())

    def count_pages(self, cookbook_id: UUID) -> int:
        stmt = select(func.count(index_page_table.c.id)).where(
            index_page_table.c.cookbook_id == cookbook_id
        )
        return int(self.session.execute(stmt).scalar_one())

    def next_page_order(self, cookbook_id: UUID) -> int:
        stmt = select(func.max(index_page_table.c.page_order)).where(
            index_page_table.c.cookbook_id == cookbook_id
        )
        highest = self.session.execute(stmt).scalar_one_or_none()
        return 1 if highest is None else int(highest) + 1


class SqlAlchemyResultStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def delete_results(self, cookbook_id: UUID) -> int:
        self.session.flush()
        stmt = delete(extraction_result_table).where(
            extraction_result_table.c.cookbook_id == cookbook_id
        )
        return _rowcount(self.session.execute(stmt))

    def append_result(self, result: ExtractionResult) -> None:
        self.session.add(result)

    def list_results(self, cookbook_id: UUID) -> list[ExtractionResult]:
        stmt = (
            select(ExtractionResult)
            .where(extraction_result_table.c.cookbook_id == cookbook_id)
            .order_by(
                extraction_result_table.c.source_page,
                extraction_result_table.c.entry_index,
            )
        )
        return list(self.session.scalars(stmt))


if TYPE_CHECKING:
    from cookdex.domain.ports.persistence import (
        CookbookRepository,
        IngredientRepository,
        PageStore,
        RecipeRepository,
        ResultStore,
    )

    _session_stub = cast("Session", object())
    _ingredient_repo: IngredientRepository = SqlAlchemyIngredientRepository(_session_stub)
    _recipe_repo: RecipeRepository = SqlAlchemyRecipeRepository(_session_stub)
    _cookbook_repo: CookbookRepository = SqlAlchemyCookbookRepository(_session_stub)
    _page_store: PageStore = SqlAlchemyPageStore(_session_stub)
    _result_store: ResultStore = SqlAlchemyResultStore(_session_stub)
