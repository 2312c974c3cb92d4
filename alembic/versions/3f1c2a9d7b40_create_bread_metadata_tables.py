"""create_bread_metadata_tables

Revision ID: 3f1c2a9d7b40
Revises:
Create Date: 2026-10-19 09:12:31.402117

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "data_types",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "name",
            sa.String(length=255),
            nullable=False,
            comment="Physical table name",
        ),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("display_name_singular", sa.String(length=255), nullable=False),
        sa.Column("display_name_plural", sa.String(length=255), nullable=False),
        sa.Column("icon", sa.String(length=255), nullable=True),
        sa.Column("model_name", sa.String(length=255), nullable=True),
        sa.Column("policy_name", sa.String(length=255), nullable=True),
        sa.Column("controller", sa.String(length=255), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("translatable", sa.Boolean(), nullable=False),
        sa.Column("generate_permissions", sa.Boolean(), nullable=False),
        sa.Column("server_side", sa.Boolean(), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index("ix_data_types_name", "data_types", ["name"], unique=True)

    op.create_table(
        "data_rows",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("data_type_id", sa.Integer(), nullable=False),
        sa.Column("field", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=False),
        sa.Column("browse", sa.Boolean(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("edit", sa.Boolean(), nullable=False),
        sa.Column("add", sa.Boolean(), nullable=False),
        sa.Column("delete", sa.Boolean(), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["data_type_id"], ["data_types.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("data_type_id", "field", name="uq_data_rows_data_type_field"),
    )
    op.create_index("ix_data_rows_data_type_id", "data_rows", ["data_type_id"])
    op.create_index("ix_data_rows_field", "data_rows", ["field"])

    op.create_table(
        "permissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column(
            "table_name",
            sa.String(length=255),
            nullable=True,
            comment="Table the permission applies to (NULL for global permissions)",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_permissions_key", "permissions", ["key"])
    op.create_index("ix_permissions_table_name", "permissions", ["table_name"])

    op.create_table(
        "translations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("table_name", sa.String(length=255), nullable=False),
        sa.Column("column_name", sa.String(length=255), nullable=False),
        sa.Column("foreign_key", sa.Integer(), nullable=False),
        sa.Column("locale", sa.String(length=16), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "table_name",
            "column_name",
            "foreign_key",
            "locale",
            name="uq_translations_target_locale",
        ),
    )
    op.create_index("ix_translations_foreign_key", "translations", ["foreign_key"])

    # The global capability every database route checks
    op.execute("INSERT INTO permissions (key, table_name) VALUES ('browse_database', NULL)")


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_translations_foreign_key", table_name="translations")
    op.drop_table("translations")
    op.drop_index("ix_permissions_table_name", table_name="permissions")
    op.drop_index("ix_permissions_key", table_name="permissions")
    op.drop_table("permissions")
    op.drop_index("ix_data_rows_field", table_name="data_rows")
    op.drop_index("ix_data_rows_data_type_id", table_name="data_rows")
    op.drop_table("data_rows")
    op.drop_index("ix_data_types_name", table_name="data_types")
    op.drop_table("data_types")
