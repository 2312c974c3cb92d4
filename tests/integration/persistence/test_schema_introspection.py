"""Integration tests for SchemaManager against a live SQLite database."""

import pytest

from breadbase.domain.exceptions import InvalidIdentifier, SchemaNotFound


@pytest.mark.asyncio
async def test_list_table_names_is_sorted(schema_manager, products_table):
    names = await schema_manager.list_table_names()

    assert names == sorted(names)
    assert {"products", "data_types", "data_rows", "permissions", "translations"} <= set(names)


@pytest.mark.asyncio
async def test_describe_table(schema_manager, products_table):
    table = await schema_manager.describe_table("products")

    assert table.column_names == ["id", "name", "price", "status", "in_stock", "created_at"]
    assert table.primary_key.columns == ["id"]

    id_column = table.get_column("id")
    assert id_column.type == "integer"
    assert id_column.autoincrement is True
    assert id_column.nullable is False

    name = table.get_column("name")
    assert (name.type, name.length, name.nullable) == ("string", 100, False)

    price = table.get_column("price")
    assert (price.type, price.precision, price.scale) == ("decimal", 10, 2)

    assert table.get_column("status").default == "draft"
    assert table.get_column("in_stock").type == "boolean"
    assert table.get_column("in_stock").default == "1"
    assert table.get_column("created_at").type == "datetime"

    assert [index.to_dict() for index in table.indexes] == [
        {"name": "products_name_index", "columns": ["name"], "unique": False}
    ]


@pytest.mark.asyncio
async def test_describe_columns_layout(schema_manager, products_table):
    rows = {row["field"]: row for row in await schema_manager.describe_columns("products")}

    assert rows["id"]["key"] == "PRI"
    assert rows["id"]["extra"] == "auto_increment"
    assert rows["name"]["key"] == "MUL"
    assert rows["name"]["null"] == "NO"
    assert rows["price"]["null"] == "YES"
    assert rows["status"]["default"] == "draft"


@pytest.mark.asyncio
async def test_describe_missing_table(schema_manager):
    with pytest.raises(SchemaNotFound):
        await schema_manager.describe_table("missing")


@pytest.mark.asyncio
async def test_drop_table(schema_manager, products_table):
    await schema_manager.drop_table("products")

    assert await schema_manager.table_exists("products") is False


@pytest.mark.asyncio
async def test_drop_table_rejects_unsafe_name(schema_manager, products_table):
    with pytest.raises(InvalidIdentifier):
        await schema_manager.drop_table("products; DROP TABLE data_types")

    assert await schema_manager.table_exists("data_types")


@pytest.mark.asyncio
async def test_drop_missing_table(schema_manager):
    with pytest.raises(SchemaNotFound):
        await schema_manager.drop_table("missing")
