"""Read-only view of the live database schema, plus table removal.

All catalog access goes through SQLAlchemy's Inspector, run on the sync
side of an async connection.
"""

from typing import Any

import sqlalchemy as sa
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.schema import DropTable

from breadbase.core.logging import get_logger
from breadbase.domain.entities.table import Table
from breadbase.domain.exceptions import SchemaNotFound, SchemaUpdateFailed, UnsupportedType
from breadbase.domain.services.identifier_validator import IdentifierValidator
from breadbase.infrastructure.persistence.type_registry import TypeRegistry, get_type_registry

logger = get_logger(__name__)

INTEGER_TYPES = ("integer", "bigint", "smallint", "tinyint", "mediumint")


def normalize_default(default: Any) -> str | None:
    """Normalize a reflected server default for comparison and display.

    Reflection returns the SQL text of the default, e.g. ``'draft'`` or
    ``(0)``; wrapping parentheses and quotes are removed.
    """
    if default is None:
        return None
    value = str(default).strip()
    while len(value) >= 2 and value[0] == "(" and value[-1] == ")":
        value = value[1:-1].strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1].replace(value[0] * 2, value[0])
    return value


class SchemaManager:
    """Introspects and drops physical tables.

    Args:
        engine: Async engine connected to the managed database.
        type_registry: Registry used to map reflected types to portable
            names. Defaults to the process-wide registry for the engine's
            dialect.
        validator: Identifier validator applied to table names before DDL.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        type_registry: TypeRegistry | None = None,
        validator: IdentifierValidator | None = None,
    ) -> None:
        self.engine = engine
        self.type_registry = type_registry or get_type_registry(engine.dialect.name)
        self.validator = validator or IdentifierValidator()

    def get_platform_name(self) -> str:
        return self.engine.dialect.name

    async def list_table_names(self) -> list[str]:
        """List all tables, sorted alphabetically."""
        async with self.engine.connect() as conn:
            names = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        return sorted(names)

    async def table_exists(self, name: str) -> bool:
        async with self.engine.connect() as conn:
            return await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).has_table(name)
            )

    async def describe_table(self, name: str) -> Table:
        """Build a Table model from the live catalog.

        Raises:
            SchemaNotFound: If the table does not exist.
            UnsupportedType: If a column's type has no portable name.
        """
        async with self.engine.connect() as conn:
            table = await conn.run_sync(self._describe, name)
        if table is None:
            raise SchemaNotFound(name)
        return table

    def _describe(self, sync_conn: sa.Connection, name: str) -> Table | None:
        inspector = inspect(sync_conn)
        if not inspector.has_table(name):
            return None

        table = Table(name=name)
        primary_key = inspector.get_pk_constraint(name)
        pk_columns = primary_key.get("constrained_columns") or []

        for reflected in inspector.get_columns(name):
            column_type = reflected["type"]
            try:
                portable = self.type_registry.from_platform_type(column_type)
            except UnsupportedType as e:
                raise UnsupportedType(e.type_name, e.dialect, column=reflected["name"]) from e

            spec = self.type_registry.get_spec(portable)
            autoincrement = reflected.get("autoincrement") is True or (
                pk_columns == [reflected["name"]] and portable in INTEGER_TYPES
            )
            table.add_column(
                reflected["name"],
                portable,
                {
                    "nullable": bool(reflected.get("nullable", True)),
                    "default": normalize_default(reflected.get("default")),
                    "unsigned": bool(getattr(column_type, "unsigned", False)),
                    "autoincrement": autoincrement,
                    "length": getattr(column_type, "length", None) if spec.supports_length else None,
                    "precision": getattr(column_type, "precision", None)
                    if spec.supports_precision
                    else None,
                    "scale": getattr(column_type, "scale", None) if spec.supports_precision else None,
                    "comment": reflected.get("comment"),
                },
            )

        if pk_columns:
            table.set_primary_key(pk_columns, primary_key.get("name"))

        for index in inspector.get_indexes(name):
            if not index.get("name") or None in index.get("column_names", []):
                # Expression indexes have no column list to model
                continue
            table.add_index(index["column_names"], name=index["name"], unique=bool(index["unique"]))

        for fk in inspector.get_foreign_keys(name):
            options = fk.get("options") or {}
            table.add_foreign_key(
                fk["constrained_columns"],
                fk["referred_table"],
                fk["referred_columns"],
                name=fk.get("name"),
                on_delete=options.get("ondelete"),
                on_update=options.get("onupdate"),
                generate_name=False,
            )

        return table

    async def describe_columns(self, name: str) -> list[dict[str, Any]]:
        """Describe a table's columns in the familiar DESCRIBE layout.

        Returns:
            One dict per column with field, type, null, key, default and
            extra entries.
        """
        table = await self.describe_table(name)
        pk_columns = table.primary_key.columns if table.primary_key else []
        unique_columns = {i.columns[0] for i in table.indexes if i.unique and len(i.columns) == 1}
        indexed_columns = {i.columns[0] for i in table.indexes}

        rows = []
        for column in table.columns:
            if column.name in pk_columns:
                key = "PRI"
            elif column.name in unique_columns:
                key = "UNI"
            elif column.name in indexed_columns:
                key = "MUL"
            else:
                key = ""
            rows.append({
                "field": column.name,
                "type": column.type,
                "null": "YES" if column.nullable else "NO",
                "key": key,
                "default": column.default,
                "extra": "auto_increment" if column.autoincrement else "",
                "length": column.length,
                "unsigned": column.unsigned,
            })
        return rows

    async def drop_table(self, name: str) -> None:
        """Drop a table and confirm it is gone from the catalog.

        Raises:
            InvalidIdentifier: If the name is not a valid identifier.
            SchemaNotFound: If the table does not exist.
            SchemaUpdateFailed: If the table is still present afterwards.
        """
        identifier = self.validator.validate(name)
        if not await self.table_exists(identifier):
            raise SchemaNotFound(identifier)

        logger.info("Dropping table", table_name=identifier)
        async with self.engine.begin() as conn:
            await conn.execute(DropTable(sa.Table(identifier, sa.MetaData())))

        if await self.table_exists(identifier):
            raise SchemaUpdateFailed(
                identifier, "drop table", rolled_back=False, cause="table is still present"
            )
        logger.info("Table dropped", table_name=identifier)
