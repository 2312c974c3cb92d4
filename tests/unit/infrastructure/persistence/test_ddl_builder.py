"""Unit tests for DDLBuilder and reflected default normalization."""

import pytest
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.schema import CreateTable

from breadbase.domain.entities.table import Table
from breadbase.domain.services import IdentifierValidator
from breadbase.infrastructure.persistence.ddl_builder import DDLBuilder, require_identifier
from breadbase.infrastructure.persistence.schema_manager import normalize_default
from breadbase.infrastructure.persistence.schema_updater import SchemaUpdater
from breadbase.infrastructure.persistence.type_registry import TypeRegistry


def validated(table: Table) -> Table:
    """Validate every name of a table the way the schema updater does."""
    # Building an engine does not connect
    updater = SchemaUpdater(create_async_engine("sqlite+aiosqlite://"), TypeRegistry("sqlite"))
    return updater.validate_table(table, check_types=False)


def products() -> Table:
    table = Table.for_create("products")
    table.add_column("name", "string", {"nullable": False, "length": 100})
    table.add_column("status", "string", {"default": "draft"})
    table.add_column("in_stock", "boolean", {"nullable": False, "default": True})
    table.add_column("created_at", "datetime", {"default": "current_timestamp"})
    table.add_index(["name"], unique=True)
    return table


class TestRequireIdentifier:
    def test_plain_strings_are_refused(self) -> None:
        with pytest.raises(TypeError, match="validated Identifier"):
            require_identifier("products", "table name")

    def test_identifiers_pass(self) -> None:
        name = IdentifierValidator().validate("products")

        assert require_identifier(name) is name

    def test_unvalidated_table_cannot_be_built(self) -> None:
        builder = DDLBuilder(TypeRegistry("sqlite"))

        with pytest.raises(TypeError):
            builder.build_table(products(), sa.MetaData())


class TestBuildTable:
    def test_create_table_sql(self) -> None:
        builder = DDLBuilder(TypeRegistry("sqlite"))
        sa_table = builder.build_table(validated(products()), sa.MetaData())

        sql = str(CreateTable(sa_table).compile(dialect=sqlite.dialect()))

        assert "id INTEGER NOT NULL" in sql
        assert "name VARCHAR(100) NOT NULL" in sql
        assert "status VARCHAR(255) DEFAULT 'draft'" in sql
        assert "in_stock BOOLEAN DEFAULT 1 NOT NULL" in sql
        assert "created_at DATETIME DEFAULT CURRENT_TIMESTAMP" in sql
        assert "PRIMARY KEY (id)" in sql
        assert sa_table.primary_key.name == "primary"
        assert [index.name for index in sa_table.indexes] == ["products_name_unique"]

    def test_postgresql_primary_key_is_qualified(self) -> None:
        builder = DDLBuilder(TypeRegistry("postgresql"))
        sa_table = builder.build_table(validated(products()), sa.MetaData())

        sql = str(CreateTable(sa_table).compile(dialect=postgresql.dialect()))

        assert "CONSTRAINT products_pkey PRIMARY KEY (id)" in sql
        assert "DEFAULT true" in sql

    def test_foreign_key_references_parent(self) -> None:
        metadata = sa.MetaData()
        sa.Table("authors", metadata, sa.Column("id", sa.Integer, primary_key=True))
        table = Table.for_create("books")
        table.add_column("author_id", "integer", {"nullable": False})
        table.add_foreign_key(["author_id"], "authors", ["id"], on_delete="CASCADE")

        sa_table = DDLBuilder(TypeRegistry("sqlite")).build_table(validated(table), metadata)
        sql = str(CreateTable(sa_table).compile(dialect=sqlite.dialect()))

        assert "CONSTRAINT books_author_id_foreign FOREIGN KEY(author_id)" in sql
        assert "REFERENCES authors (id) ON DELETE CASCADE" in sql


@pytest.mark.parametrize(
    "reflected, expected",
    [
        (None, None),
        ("'draft'", "draft"),
        ("('draft')", "draft"),
        ("(0)", "0"),
        ("1", "1"),
        ("'it''s'", "it's"),
        ("CURRENT_TIMESTAMP", "CURRENT_TIMESTAMP"),
    ],
)
def test_normalize_default(reflected, expected):
    assert normalize_default(reflected) == expected
