"""Turns validated Table models into SQLAlchemy schema objects.

Every name handed to the builder must be an Identifier produced by the
IdentifierValidator. Plain strings are refused outright, so no DDL can
be built from a name that skipped validation.
"""

from typing import Any

import sqlalchemy as sa

from breadbase.domain.entities.table import Column, ForeignKey, Index, Table
from breadbase.domain.services.identifier_validator import Identifier
from breadbase.infrastructure.persistence.type_registry import TypeRegistry

# Defaults that are SQL expressions, not literal values
SQL_EXPRESSION_DEFAULTS = frozenset({"CURRENT_TIMESTAMP", "CURRENT_DATE", "CURRENT_TIME"})


def require_identifier(value: Any, kind: str = "identifier") -> Identifier:
    """Return ``value`` if it is a validated Identifier.

    Raises:
        TypeError: If ``value`` is anything else, including a plain str.
    """
    if not isinstance(value, Identifier):
        raise TypeError(
            f"{kind} must be a validated Identifier, got {type(value).__name__}: {value!r}"
        )
    return value


class DDLBuilder:
    """Builds SQLAlchemy Column, Table and constraint objects.

    Args:
        type_registry: Registry of the target dialect.
    """

    def __init__(self, type_registry: TypeRegistry) -> None:
        self.type_registry = type_registry

    @property
    def dialect(self) -> str:
        return self.type_registry.dialect

    def column_type(self, column: Column) -> sa.types.TypeEngine:
        return self.type_registry.to_platform_type(
            column.type,
            length=column.length,
            precision=column.precision,
            scale=column.scale,
            unsigned=column.unsigned,
        )

    def server_default(self, column: Column) -> Any:
        """Render a column default as a server default clause."""
        default = column.default
        if default is None:
            return None
        if isinstance(default, bool):
            if self.dialect == "postgresql":
                return sa.text("true" if default else "false")
            return sa.text("1" if default else "0")
        if isinstance(default, (int, float)):
            return sa.text(repr(default))
        if isinstance(default, str) and default.upper() in SQL_EXPRESSION_DEFAULTS:
            return sa.text(default.upper())
        # Plain strings are rendered as quoted literals by SQLAlchemy
        return str(default)

    def build_column(self, column: Column, primary_key: bool = False) -> sa.Column:
        name = require_identifier(column.name, "column name")
        return sa.Column(
            name,
            self.column_type(column),
            nullable=column.nullable and not primary_key,
            server_default=self.server_default(column),
            autoincrement=column.autoincrement if primary_key else False,
            comment=column.comment,
        )

    def primary_key_name(self, table: Table) -> str | None:
        """Constraint name for the table's primary key.

        PostgreSQL constraint names share one namespace per schema, so the
        conventional ``primary`` is qualified with the table name there.
        """
        name = table.primary_key.name if table.primary_key else None
        if name is None:
            return None
        require_identifier(name, "primary key name")
        if self.dialect == "postgresql" and name == "primary":
            return f"{table.name}_pkey"
        return name

    def build_foreign_key(self, foreign_key: ForeignKey) -> sa.ForeignKeyConstraint:
        foreign_table = require_identifier(foreign_key.foreign_table, "foreign table")
        return sa.ForeignKeyConstraint(
            [require_identifier(c, "foreign key column") for c in foreign_key.columns],
            [
                f"{foreign_table}.{require_identifier(c, 'referenced column')}"
                for c in foreign_key.foreign_columns
            ],
            name=require_identifier(foreign_key.name, "foreign key name")
            if foreign_key.name
            else None,
            ondelete=foreign_key.on_delete,
            onupdate=foreign_key.on_update,
        )

    def build_index(self, index: Index, sa_table: sa.Table) -> sa.Index:
        return sa.Index(
            require_identifier(index.name, "index name"),
            *[sa_table.c[require_identifier(c, "index column")] for c in index.columns],
            unique=index.unique,
        )

    def build_table(self, table: Table, metadata: sa.MetaData) -> sa.Table:
        """Build a SQLAlchemy Table, indexes included, in ``metadata``.

        Tables referenced by foreign keys must already be present in
        ``metadata`` so the REFERENCES clauses can be rendered.
        """
        name = require_identifier(table.name, "table name")
        pk_columns = table.primary_key.columns if table.primary_key else []

        elements: list[Any] = [
            self.build_column(column, primary_key=column.name in pk_columns)
            for column in table.columns
        ]
        if pk_columns:
            elements.append(
                sa.PrimaryKeyConstraint(
                    *[require_identifier(c, "primary key column") for c in pk_columns],
                    name=self.primary_key_name(table),
                )
            )
        elements.extend(self.build_foreign_key(fk) for fk in table.foreign_keys)

        sa_table = sa.Table(name, metadata, *elements, comment=table.options.get("comment"))
        for index in table.indexes:
            self.build_index(index, sa_table)
        return sa_table
