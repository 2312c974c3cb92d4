"""Unit tests for TypeRegistry."""

import pytest
import sqlalchemy as sa
from sqlalchemy.dialects import mysql, postgresql, sqlite

from breadbase.domain.exceptions import UnsupportedType
from breadbase.infrastructure.persistence.type_registry import (
    TypeRegistry,
    TypeSpec,
    get_type_registry,
)


class TestPortableTypes:
    @pytest.mark.parametrize(
        "name",
        ["integer", "smallint", "bigint", "decimal", "float", "boolean", "string",
         "text", "date", "datetime", "time", "json", "binary"],
    )
    def test_base_types_map_both_ways(self, name: str) -> None:
        registry = TypeRegistry("sqlite")

        assert registry.from_platform_type(registry.to_platform_type(name)) == name

    @pytest.mark.parametrize(
        "reflected, expected",
        [
            (sa.VARCHAR(30), "string"),
            (sa.TEXT(), "text"),
            (sa.INTEGER(), "integer"),
            (sa.NUMERIC(10, 2), "decimal"),
            (sqlite.DATETIME(), "datetime"),
            (sqlite.JSON(), "json"),
            (sa.BLOB(), "binary"),
        ],
    )
    def test_reflected_dialect_types_resolve_to_generic_names(self, reflected, expected) -> None:
        assert TypeRegistry("sqlite").from_platform_type(reflected) == expected

    def test_string_gets_default_length(self) -> None:
        column_type = TypeRegistry("sqlite").to_platform_type("string")

        assert isinstance(column_type, sa.String)
        assert column_type.length == 255

    def test_decimal_precision_and_scale(self) -> None:
        column_type = TypeRegistry("sqlite").to_platform_type("decimal", precision=8, scale=2)

        assert (column_type.precision, column_type.scale) == (8, 2)

    def test_unknown_type(self) -> None:
        with pytest.raises(UnsupportedType) as exc_info:
            TypeRegistry("sqlite").to_platform_type("money")

        assert exc_info.value.type_name == "money"
        assert exc_info.value.dialect == "sqlite"

    def test_unmapped_platform_type(self) -> None:
        with pytest.raises(UnsupportedType):
            TypeRegistry("sqlite").from_platform_type(sa.Interval())


class TestUnsigned:
    def test_unsigned_is_physical_on_mysql(self) -> None:
        column_type = TypeRegistry("mysql").to_platform_type("integer", unsigned=True)

        assert isinstance(column_type, mysql.INTEGER)
        assert column_type.unsigned is True

    def test_unsigned_is_ignored_elsewhere(self) -> None:
        column_type = TypeRegistry("postgresql").to_platform_type("integer", unsigned=True)

        assert type(column_type) is sa.Integer


class TestCustomTypes:
    def test_custom_types_register_once(self) -> None:
        registry = TypeRegistry("postgresql")

        registry.register_custom_types()
        registry.register_custom_types()

        assert registry.has_type("jsonb")
        assert registry.from_platform_type(postgresql.JSONB()) == "jsonb"

    def test_custom_types_are_per_dialect(self) -> None:
        assert not get_type_registry("sqlite").has_type("jsonb")
        assert get_type_registry("mysql").has_type("mediumtext")

    def test_duplicate_registration_is_rejected(self) -> None:
        registry = TypeRegistry("sqlite")

        with pytest.raises(ValueError):
            registry.register(TypeSpec("integer", sa.Interval, "Numbers"))
        with pytest.raises(ValueError):
            registry.register(TypeSpec("whole_number", sa.Integer, "Numbers"))

    def test_platform_types_describe_each_type(self) -> None:
        types = TypeRegistry("sqlite").get_platform_types()

        assert types["string"]["sql_type"] == "VARCHAR(255)"
        assert types["string"]["supports_length"] is True
        assert types["decimal"]["supports_precision"] is True
        assert types["real"]["category"] == "Numbers"
