"""Unit tests for the in-memory Table model."""

import pytest

from breadbase.domain.entities.table import Table, TableDefinition
from breadbase.domain.exceptions import DuplicateColumn, DuplicateIndex, UnknownColumn


class TestCreateFlow:
    def test_for_create_starts_with_id_primary_key(self) -> None:
        table = Table.for_create("products")

        assert table.column_names == ["id"]
        column = table.get_column("id")
        assert column.type == "integer"
        assert column.unsigned is True
        assert column.nullable is False
        assert column.autoincrement is True
        assert table.primary_key.columns == ["id"]
        assert table.primary_key.name == "primary"

    def test_add_column_defaults(self) -> None:
        table = Table("products")

        column = table.add_column("name", "STRING", {"length": 100, "bogus": True})

        assert column.type == "string"
        assert column.nullable is True
        assert column.unsigned is False
        assert column.autoincrement is False
        assert column.length == 100
        assert not hasattr(column, "bogus")

    def test_notnull_option_is_inverse_of_nullable(self) -> None:
        table = Table("products")

        column = table.add_column("name", "string", {"notnull": True})

        assert column.nullable is False

    def test_duplicate_column_is_rejected_case_insensitively(self) -> None:
        table = Table.for_create("products")

        with pytest.raises(DuplicateColumn):
            table.add_column("ID", "integer")

    def test_primary_key_on_unknown_column(self) -> None:
        table = Table.for_create("products")

        with pytest.raises(UnknownColumn) as exc_info:
            table.set_primary_key(["missing"])
        assert exc_info.value.column == "missing"

    def test_index_default_name_and_duplicates(self) -> None:
        table = Table.for_create("products")
        table.add_column("sku", "string")

        index = table.add_index(["sku"], unique=True)

        assert index.name == "products_sku_unique"
        with pytest.raises(DuplicateIndex):
            table.add_index(["sku"], name="products_sku_unique")

    def test_foreign_key_default_name(self) -> None:
        table = Table.for_create("books")
        table.add_column("author_id", "integer")

        fk = table.add_foreign_key(["author_id"], "authors", ["id"], on_delete="CASCADE")

        assert fk.name == "books_author_id_foreign"
        assert fk.on_delete == "CASCADE"


class TestEditing:
    def _table(self) -> Table:
        table = Table.for_create("products")
        table.add_column("name", "string")
        table.add_column("price", "decimal")
        table.add_index(["name"])
        return table

    def test_rename_column_updates_keys_and_indexes(self) -> None:
        table = self._table()

        table.rename_column("name", "title")

        assert table.column_names == ["id", "title", "price"]
        assert table.indexes[0].columns == ["title"]

    def test_rename_to_existing_column_is_rejected(self) -> None:
        with pytest.raises(DuplicateColumn):
            self._table().rename_column("name", "price")

    def test_remove_column_drops_dependent_indexes(self) -> None:
        table = self._table()

        table.remove_column("name")

        assert table.column_names == ["id", "price"]
        assert table.indexes == []

    def test_remove_primary_key_column(self) -> None:
        table = self._table()

        table.remove_column("id")

        assert table.primary_key is None

    def test_move_column(self) -> None:
        table = self._table()

        table.move_column("price", after="id")
        assert table.column_names == ["id", "price", "name"]

        table.move_column("name")
        assert table.column_names == ["name", "id", "price"]

    def test_move_after_unknown_column_leaves_table_untouched(self) -> None:
        table = self._table()

        with pytest.raises(UnknownColumn):
            table.move_column("price", after="missing")
        assert table.column_names == ["id", "name", "price"]

    def test_copy_is_deep(self) -> None:
        table = self._table()

        copied = table.copy()
        copied.get_column("name").nullable = False

        assert table.get_column("name").nullable is True


class TestSerialization:
    def test_from_dict_round_trips_to_dict(self) -> None:
        data = {
            "name": "books",
            "columns": [
                {"name": "id", "type": "integer", "nullable": False, "autoincrement": True},
                {"name": "author_id", "type": "integer", "nullable": False},
                {"name": "title", "type": "string", "length": 200},
            ],
            "primary_key": {"name": "primary", "columns": ["id"]},
            "indexes": [{"name": "books_title_index", "columns": ["title"], "unique": False}],
            "foreign_keys": [
                {"columns": ["author_id"], "foreign_table": "authors", "foreign_columns": ["id"]}
            ],
        }

        table = Table.from_dict(data)
        result = table.to_dict()

        assert [c["name"] for c in result["columns"]] == ["id", "author_id", "title"]
        assert result["columns"][2]["length"] == 200
        assert result["primary_key"] == {"name": "primary", "columns": ["id"]}
        assert result["foreign_keys"][0]["name"] == "books_author_id_foreign"

    def test_from_dict_rejects_index_on_unknown_column(self) -> None:
        with pytest.raises(UnknownColumn):
            Table.from_dict({
                "name": "books",
                "columns": [{"name": "id", "type": "integer"}],
                "indexes": [{"columns": ["title"]}],
            })

    def test_definition_rename_is_explicit(self) -> None:
        same = TableDefinition.from_dict({"name": "books", "columns": []})
        renamed = TableDefinition.from_dict(
            {"name": "novels", "original_name": "books", "columns": []}
        )

        assert same.is_rename is False
        assert renamed.is_rename is True
        assert renamed.original_name == "books"
