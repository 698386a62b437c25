"""initial catalog and ingestion schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from cookdex.adapters.sqlalchemy.mappings import UTCDateTime

revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

INGESTION_STATUSES = ("NONE", "PROCESSING", "COMPLETED", "COMPLETED_WITH_ERRORS", "FAILED")


def upgrade() -> None:
    op.create_table(
        "ingredient",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_ingredient"),
        sa.UniqueConstraint("name", name="uq_ingredient_name"),
    )
    op.create_table(
        "cookbook",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("author", sa.String(), nullable=True),
        sa.Column(
            "ingestion_status",
            sa.Enum(*INGESTION_STATUSES, name="ingestionstatus", native_enum=False),
            nullable=False,
        ),
        sa.Column("ingestion_error", sa.String(), nullable=True),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_cookbook"),
    )
    op.create_table(
        "ingredient_alias",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("ingredient_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["ingredient_id"],
            ["ingredient.id"],
            name="fk_ingredient_alias_ingredient_id_ingredient",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_ingredient_alias"),
        sa.UniqueConstraint("name", name="uq_ingredient_alias_name"),
    )
    op.create_index(
        "ix_ingredient_alias_ingredient_id", "ingredient_alias", ["ingredient_id"], unique=False
    )
    op.create_table(
        "ingredient_available_month",
        sa.Column("ingredient_id", sa.Uuid(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "month BETWEEN 1 AND 12", name="ck_ingredient_available_month_month_range"
        ),
        sa.ForeignKeyConstraint(
            ["ingredient_id"],
            ["ingredient.id"],
            name="fk_ingredient_available_month_ingredient_id_ingredient",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("ingredient_id", "month", name="pk_ingredient_available_month"),
    )
    op.create_table(
        "recipe",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("cookbook_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("page_number", sa.Integer(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["cookbook_id"],
            ["cookbook.id"],
            name="fk_recipe_cookbook_id_cookbook",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_recipe"),
    )
    op.create_index(
        "ix_recipe_cookbook_entry", "recipe", ["cookbook_id", "name", "page_number"], unique=False
    )
    op.create_table(
        "recipe_ingredient",
        sa.Column("recipe_id", sa.Uuid(), nullable=False),
        sa.Column("ingredient_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(
            ["ingredient_id"],
            ["ingredient.id"],
            name="fk_recipe_ingredient_ingredient_id_ingredient",
        ),
        sa.ForeignKeyConstraint(
            ["recipe_id"],
            ["recipe.id"],
            name="fk_recipe_ingredient_recipe_id_recipe",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("recipe_id", "ingredient_id", name="pk_recipe_ingredient"),
    )
    op.create_index(
        "ix_recipe_ingredient_ingredient_id", "recipe_ingredient", ["ingredient_id"], unique=False
    )
    op.create_table(
        "index_page",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("cookbook_id", sa.Uuid(), nullable=False),
        sa.Column("page_order", sa.Integer(), nullable=False),
        sa.Column("image_data", sa.LargeBinary(), nullable=False),
        sa.Column("content_type", sa.String(length=32), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["cookbook_id"],
            ["cookbook.id"],
            name="fk_index_page_cookbook_id_cookbook",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_index_page"),
    )
    op.create_index("ix_index_page_cookbook_id", "index_page", ["cookbook_id"], unique=False)
    op.create_table(
        "extraction_result",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("cookbook_id", sa.Uuid(), nullable=False),
        sa.Column("ingredient", sa.String(), nullable=False),
        sa.Column("recipe_name", sa.String(), nullable=False),
        sa.Column("page_number", sa.Integer(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("needs_review", sa.Boolean(), nullable=False),
        sa.Column("source_page", sa.Integer(), nullable=False),
        sa.Column("entry_index", sa.Integer(), nullable=False),
        sa.Column("created_at", UTCDateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ["cookbook_id"],
            ["cookbook.id"],
            name="fk_extraction_result_cookbook_id_cookbook",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_extraction_result"),
    )
    op.create_index(
        "ix_extraction_result_cookbook_id", "extraction_result", ["cookbook_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_extraction_result_cookbook_id", table_name="extraction_result")
    op.drop_table("extraction_result")
    op.drop_index("ix_index_page_cookbook_id", table_name="index_page")
    op.drop_table("index_page")
    op.drop_index("ix_recipe_ingredient_ingredient_id", table_name="recipe_ingredient")
    op.drop_table("recipe_ingredient")
    op.drop_index("ix_recipe_cookbook_entry", table_name="recipe")
    op.drop_table("recipe")
    op.drop_table("ingredient_available_month")
    op.drop_index("ix_ingredient_alias_ingredient_id", table_name="ingredient_alias")
    op.drop_table("ingredient_alias")
    op.drop_table("cookbook")
    op.drop_table("ingredient")
