"""SQLAlchemy mapping metadata for the cookdex domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Table,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from cookdex.domain.model import (
    AvailableMonth,
    Cookbook,
    ExtractionResult,
    IndexPage,
    Ingredient,
    IngredientAlias,
    IngestionStatus,
    Recipe,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Core tables -----------------------------------------------------------------

ingredient_table = Table(
    "ingredient",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("name", String, nullable=False, unique=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
)

ingredient_alias_table = Table(
    "ingredient_alias",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "ingredient_id",
        UUIDColumnType,
        ForeignKey("ingredient.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("name", String, nullable=False, unique=True),
    Column("created_at", UTCDateTime(), nullable=True),
)

ingredient_available_month_table = Table(
    "ingredient_available_month",
    mapper_registry.metadata,
    Column(
        "ingredient_id",
        UUIDColumnType,
        ForeignKey("ingredient.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("month", Integer, primary_key=True),
    CheckConstraint("month BETWEEN 1 AND 12", name="month_range"),
)

cookbook_table = Table(
    "cookbook",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("title", String, nullable=False),
    Column("author", String, nullable=True),
    Column(
        "ingestion_status",
        Enum(IngestionStatus, native_enum=False),
        nullable=False,
        default=IngestionStatus.NONE,
    ),
    Column("ingestion_error", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
)

recipe_table = Table(
    "recipe",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "cookbook_id",
        UUIDColumnType,
        ForeignKey("cookbook.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", String, nullable=False),
    Column("page_number", Integer, nullable=False),
    Column("created_at", UTCDateTime(), nullable=True),
    Index("ix_recipe_cookbook_entry", "cookbook_id", "name", "page_number"),
)

recipe_ingredient_table = Table(
    "recipe_ingredient",
    mapper_registry.metadata,
    Column(
        "recipe_id",
        UUIDColumnType,
        ForeignKey("recipe.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "ingredient_id",
        UUIDColumnType,
        ForeignKey("ingredient.id"),
        primary_key=True,
        index=True,
    ),
)

index_page_table = Table(
    "index_page",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "cookbook_id",
        UUIDColumnType,
        ForeignKey("cookbook.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("page_order", Integer, nullable=False),
    Column("image_data", LargeBinary, nullable=False),
    Column("content_type", String(32), nullable=False),
    Column("created_at", UTCDateTime(), nullable=True),
)

extraction_result_table = Table(
    "extraction_result",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "cookbook_id",
        UUIDColumnType,
        ForeignKey("cookbook.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("ingredient", String, nullable=False),
    Column("recipe_name", String, nullable=False),
    Column("page_number", Integer, nullable=False),
    Column("confidence", Float, nullable=False),
    Column("needs_review", Boolean, nullable=False),
    Column("source_page", Integer, nullable=False),
    Column("entry_index", Integer, nullable=False),
    Column("created_at", UTCDateTime(), nullable=True),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(IngredientAlias, ingredient_alias_table)

    mapper_registry.map_imperatively(AvailableMonth, ingredient_available_month_table)

    mapper_registry.map_imperatively(
        Ingredient,
        ingredient_table,
        properties={
            "_aliases": relationship(
                IngredientAlias,
                cascade="all, delete-orphan",
                lazy="selectin",
                order_by=ingredient_alias_table.c.name,
            ),
            "_months": relationship(
                AvailableMonth,
                cascade="all, delete-orphan",
                lazy="selectin",
                order_by=ingredient_available_month_table.c.month,
            ),
        },
    )

    mapper_registry.map_imperatively(
        Recipe,
        recipe_table,
        properties={
            "_ingredients": relationship(
                Ingredient,
                secondary=recipe_ingredient_table,
                lazy="selectin",
            ),
        },
    )

    mapper_registry.map_imperatively(Cookbook, cookbook_table)

    mapper_registry.map_imperatively(IndexPage, index_page_table)

    mapper_registry.map_imperatively(ExtractionResult, extraction_result_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
