"""Creates and alters physical tables.

Creation builds a SQLAlchemy Table and emits it in one transaction.
Alteration diffs the live table against the submitted definition, plans
the operations (see schema_diff) and runs them through alembic's
operations API. On SQLite each column-level step runs in batch mode,
which rebuilds the table when SQLite cannot ALTER in place.
"""

from dataclasses import dataclass, field
from typing import Callable

import sqlalchemy as sa
from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from breadbase.core.logging import get_logger
from breadbase.domain.entities.table import (
    DEFAULT_PRIMARY_KEY_NAME,
    ForeignKey,
    PrimaryKey,
    Table,
    TableDefinition,
)
from breadbase.domain.exceptions import (
    SchemaUpdateFailed,
    TableAlreadyExists,
    UnsupportedType,
)
from breadbase.domain.services.identifier_validator import Identifier, IdentifierValidator
from breadbase.infrastructure.persistence.database import supports_transactional_ddl
from breadbase.infrastructure.persistence.ddl_builder import DDLBuilder, require_identifier
from breadbase.infrastructure.persistence.schema_diff import (
    OperationKind,
    SchemaOperation,
    TableDiff,
    compute_diff,
    plan,
)
from breadbase.infrastructure.persistence.schema_manager import SchemaManager
from breadbase.infrastructure.persistence.type_registry import TypeRegistry, get_type_registry

logger = get_logger(__name__)

# Errors a DDL step can fail with; anything else is a programming error
DDL_ERRORS = (SQLAlchemyError, NotImplementedError, ValueError)

# Column attributes whose change needs a new column type
TYPE_ATTRIBUTES = frozenset({"type", "length", "precision", "scale", "unsigned"})


def _references(constraint: sa.ForeignKeyConstraint, foreign_key: ForeignKey) -> bool:
    targets = [element.target_fullname.rsplit(".", 1) for element in constraint.elements]
    return (
        list(constraint.column_keys) == list(foreign_key.columns)
        and [column for _, column in targets] == list(foreign_key.foreign_columns)
        and {table.rsplit(".", 1)[-1] for table, _ in targets} == {foreign_key.foreign_table}
    )


def without_foreign_key(foreign_key: ForeignKey) -> Callable[[sa.Table], None]:
    """Rebuild step removing the reflected constraint that matches ``foreign_key``."""

    def alter(reflected: sa.Table) -> None:
        for constraint in list(reflected.foreign_key_constraints):
            if not _references(constraint, foreign_key):
                continue
            reflected.constraints.discard(constraint)
            for element in constraint.elements:
                element.parent.foreign_keys.discard(element)
                reflected.foreign_keys.discard(element)

    return alter


def with_primary_key(columns: list[str], name: str | None = None) -> Callable[[sa.Table], None]:
    """Rebuild step replacing the primary key; no columns leaves the table without one."""

    def alter(reflected: sa.Table) -> None:
        for column in reflected.columns:
            column.primary_key = False
        reflected.append_constraint(sa.PrimaryKeyConstraint(*columns, name=name))

    return alter


@dataclass
class UpdateResult:
    """Outcome of a successful table update.

    Attributes:
        table: The table as described after the update.
        diff: The computed diff.
        operations: Descriptions of the operations applied, in order.
    """

    table: Table
    diff: TableDiff
    operations: list[str] = field(default_factory=list)


class SchemaUpdater:
    """Applies table definitions to the live database.

    Args:
        engine: Async engine of the managed database.
        type_registry: Type registry for the engine's dialect.
        validator: Identifier validator applied before any DDL.
        schema_manager: Introspector used to read live tables.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        type_registry: TypeRegistry | None = None,
        validator: IdentifierValidator | None = None,
        schema_manager: SchemaManager | None = None,
    ) -> None:
        self.engine = engine
        self.type_registry = type_registry or get_type_registry(engine.dialect.name)
        self.validator = validator or IdentifierValidator()
        self.schema_manager = schema_manager or SchemaManager(
            engine, self.type_registry, self.validator
        )
        self.builder = DDLBuilder(self.type_registry)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def validate_table(self, table: Table, check_types: bool = True) -> Table:
        """Return a copy of ``table`` with every name validated.

        Raises:
            InvalidIdentifier: If any table, column, key or index name is invalid.
            UnsupportedType: If ``check_types`` is set and a column type is
                not registered for the dialect.
        """
        validate = self.validator.validate
        validated = table.copy()
        validated.name = validate(table.name)

        for column in validated.columns:
            column.name = validate(column.name)
            if column.original_name:
                column.original_name = validate(column.original_name)
            if check_types and not self.type_registry.has_type(column.type):
                raise UnsupportedType(column.type, self.dialect, column=column.name)

        if validated.primary_key:
            validated.primary_key.columns = self.validator.validate_many(
                validated.primary_key.columns
            )
            if validated.primary_key.name:
                validated.primary_key.name = validate(validated.primary_key.name)

        for index in validated.indexes:
            index.name = validate(index.name)
            index.columns = self.validator.validate_many(index.columns)

        for fk in validated.foreign_keys:
            if fk.name:
                fk.name = validate(fk.name)
            fk.columns = self.validator.validate_many(fk.columns)
            fk.foreign_table = validate(fk.foreign_table)
            fk.foreign_columns = self.validator.validate_many(fk.foreign_columns)

        return validated

    async def create_table(self, table: Table) -> Table:
        """Create a table, its indexes and foreign keys, all or nothing.

        Returns:
            The table as described by the catalog after creation.

        Raises:
            InvalidIdentifier: If any name is invalid. Nothing is executed.
            UnsupportedType: If a column type is unknown. Nothing is executed.
            TableAlreadyExists: If the name is taken. Nothing is executed.
            SchemaUpdateFailed: If the database rejects the statement.
        """
        validated = self.validate_table(table)
        if await self.schema_manager.table_exists(validated.name):
            raise TableAlreadyExists(validated.name)

        logger.info(
            "Creating table",
            table_name=validated.name,
            columns=validated.column_names,
        )
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(self._create, validated)
        except DDL_ERRORS as e:
            logger.error("Table creation failed", table_name=validated.name, error=str(e))
            raise SchemaUpdateFailed(
                validated.name,
                "create table",
                rolled_back=True,
                cause=str(e),
            ) from e

        logger.info("Table created", table_name=validated.name)
        return await self.schema_manager.describe_table(validated.name)

    def _create(self, sync_conn: sa.Connection, table: Table) -> None:
        metadata = sa.MetaData()
        referenced = {fk.foreign_table for fk in table.foreign_keys} - {table.name}
        for name in sorted(referenced):
            sa.Table(name, metadata, autoload_with=sync_conn)
        sa_table = self.builder.build_table(table, metadata)
        sa_table.create(sync_conn)

    def compute_diff(self, live: Table, definition: TableDefinition) -> TableDiff:
        return compute_diff(live, definition, self.type_registry)

    def plan(self, diff: TableDiff) -> list[SchemaOperation]:
        return plan(diff, self.dialect)

    async def update(self, definition: TableDefinition) -> UpdateResult:
        """Bring a live table in line with a submitted definition.

        Raises:
            InvalidIdentifier: If any name is invalid. Nothing is executed.
            UnsupportedType: If a column type is unknown. Nothing is executed.
            SchemaNotFound: If the original table does not exist.
            TableAlreadyExists: If a rename targets an existing table.
            SchemaUpdateFailed: If an operation fails. ``rolled_back`` tells
                whether the earlier operations were undone.
        """
        original_name = self.validator.validate(definition.original_name)
        target = TableDefinition(original_name, self.validate_table(definition.table))

        live = self.validate_table(
            await self.schema_manager.describe_table(original_name), check_types=False
        )
        if target.is_rename and await self.schema_manager.table_exists(target.table.name):
            raise TableAlreadyExists(target.table.name)

        diff = self.compute_diff(live, target)
        operations = self.plan(diff)
        if not operations:
            logger.info("Table already up to date", table_name=live.name)
            return UpdateResult(table=live, diff=diff)

        logger.info(
            "Updating table",
            table_name=live.name,
            operations=[operation.description for operation in operations],
        )
        applied = await self._execute(live.name, operations)
        logger.info("Table updated", table_name=diff.final_name, operation_count=len(applied))

        table = await self.schema_manager.describe_table(diff.final_name)
        return UpdateResult(table=table, diff=diff, operations=applied)

    async def reorder_column(self, table_name: str, column: str, after: str | None = None) -> UpdateResult:
        """Move a column to the front, or after another column.

        Runs as a regular update with the column moved in the column list.

        Raises:
            UnknownColumn: If either column does not exist.
        """
        live = await self.schema_manager.describe_table(self.validator.validate(table_name))
        table = live.copy()
        table.move_column(column, after)
        return await self.update(TableDefinition(live.name, table))

    async def _execute(self, table_name: str, operations: list[SchemaOperation]) -> list[str]:
        applied: list[str] = []

        if supports_transactional_ddl(self.engine):
            current: SchemaOperation | None = None
            try:
                async with self.engine.begin() as conn:
                    for operation in operations:
                        current = operation
                        await conn.run_sync(self._apply, operation)
                        applied.append(operation.description)
            except DDL_ERRORS as e:
                failed = current.description if current else "begin transaction"
                logger.error(
                    "Table update failed, rolled back",
                    table_name=table_name,
                    operation=failed,
                    error=str(e),
                )
                raise SchemaUpdateFailed(
                    table_name, failed, applied_operations=[], rolled_back=True, cause=str(e)
                ) from e
            return applied

        for operation in operations:
            try:
                async with self.engine.begin() as conn:
                    await conn.run_sync(self._apply, operation)
            except DDL_ERRORS as e:
                logger.error(
                    "Table update failed part-way",
                    table_name=table_name,
                    operation=operation.description,
                    applied_operations=applied,
                    error=str(e),
                )
                raise SchemaUpdateFailed(
                    table_name,
                    operation.description,
                    applied_operations=list(applied),
                    rolled_back=False,
                    cause=str(e),
                ) from e
            applied.append(operation.description)
        return applied

    def _primary_key_name(self, table: str, primary_key: PrimaryKey) -> Identifier:
        name = primary_key.name or DEFAULT_PRIMARY_KEY_NAME
        if self.dialect == "postgresql" and name == DEFAULT_PRIMARY_KEY_NAME:
            name = f"{table}_pkey"
        return self.validator.validate(name)

    def _rebuild(
        self,
        op: Operations,
        sync_conn: sa.Connection,
        table: Identifier,
        alter: Callable[[sa.Table], None],
    ) -> None:
        """Recreate a SQLite table from its reflected definition, changed by ``alter``."""
        reflected = sa.Table(table, sa.MetaData(), autoload_with=sync_conn)
        alter(reflected)
        with op.batch_alter_table(table, recreate="always", copy_from=reflected):
            pass

    def _apply(self, sync_conn: sa.Connection, operation: SchemaOperation) -> None:
        op = Operations(MigrationContext.configure(sync_conn))
        table = require_identifier(operation.table, "table name")
        kind = operation.kind

        logger.debug("Applying schema operation", table_name=table, operation=operation.description)

        if kind == OperationKind.RENAME_TABLE:
            op.rename_table(
                require_identifier(operation.old_name), require_identifier(operation.new_name)
            )

        elif kind == OperationKind.DROP_FOREIGN_KEY:
            fk = operation.foreign_key
            if fk.name is None:
                # Only SQLite reflects keys without a name; it can only lose one by a rebuild
                if self.dialect != "sqlite":
                    raise ValueError(f"Cannot drop unnamed foreign key {fk.label}")
                self._rebuild(op, sync_conn, table, without_foreign_key(fk))
                return
            with op.batch_alter_table(table, recreate="auto") as batch:
                batch.drop_constraint(require_identifier(fk.name, "foreign key name"), type_="foreignkey")

        elif kind == OperationKind.DROP_INDEX:
            op.drop_index(require_identifier(operation.index.name, "index name"), table_name=table)

        elif kind == OperationKind.RENAME_COLUMN:
            with op.batch_alter_table(table, recreate="auto") as batch:
                batch.alter_column(
                    require_identifier(operation.old_name, "column name"),
                    new_column_name=require_identifier(operation.new_name, "column name"),
                )

        elif kind == OperationKind.ADD_COLUMN:
            with op.batch_alter_table(table, recreate="auto") as batch:
                batch.add_column(self.builder.build_column(operation.column))

        elif kind == OperationKind.CHANGE_COLUMN:
            self._change_column(op, table, operation)

        elif kind == OperationKind.DROP_PRIMARY_KEY:
            if self.dialect == "sqlite":
                self._rebuild(op, sync_conn, table, with_primary_key([]))
                return
            with op.batch_alter_table(table, recreate="auto") as batch:
                batch.drop_constraint(self._primary_key_name(table, operation.primary_key), type_="primary")

        elif kind == OperationKind.CREATE_PRIMARY_KEY:
            name = self._primary_key_name(table, operation.primary_key)
            columns = [require_identifier(c, "primary key column") for c in operation.primary_key.columns]
            if self.dialect == "sqlite":
                self._rebuild(op, sync_conn, table, with_primary_key(columns, name))
                return
            with op.batch_alter_table(table, recreate="auto") as batch:
                batch.create_primary_key(name, columns)

        elif kind == OperationKind.DROP_COLUMN:
            with op.batch_alter_table(table, recreate="auto") as batch:
                batch.drop_column(require_identifier(operation.column.name, "column name"))

        elif kind == OperationKind.REORDER_COLUMNS:
            order = tuple(require_identifier(c, "column name") for c in operation.column_order)
            with op.batch_alter_table(table, recreate="always", partial_reordering=[order]):
                pass

        elif kind == OperationKind.CREATE_INDEX:
            index = operation.index
            op.create_index(
                require_identifier(index.name, "index name"),
                table,
                [require_identifier(c, "index column") for c in index.columns],
                unique=index.unique,
            )

        elif kind == OperationKind.CREATE_FOREIGN_KEY:
            fk = operation.foreign_key
            with op.batch_alter_table(table, recreate="auto") as batch:
                batch.create_foreign_key(
                    require_identifier(fk.name, "foreign key name"),
                    require_identifier(fk.foreign_table, "foreign table"),
                    [require_identifier(c, "foreign key column") for c in fk.columns],
                    [require_identifier(c, "referenced column") for c in fk.foreign_columns],
                    ondelete=fk.on_delete,
                    onupdate=fk.on_update,
                )

        else:
            raise ValueError(f"Unknown schema operation '{kind}'")

    def _change_column(self, op: Operations, table: str, operation: SchemaOperation) -> None:
        after = operation.column
        before = operation.previous
        changed = set(operation.changed or ())

        kwargs = {
            "existing_type": self.builder.column_type(before),
            "existing_nullable": before.nullable,
            "existing_server_default": self.builder.server_default(before),
        }
        if changed & TYPE_ATTRIBUTES:
            kwargs["type_"] = self.builder.column_type(after)
        if "nullable" in changed:
            kwargs["nullable"] = after.nullable
        if "default" in changed:
            kwargs["server_default"] = self.builder.server_default(after)
        if "comment" in changed:
            kwargs["comment"] = after.comment

        with op.batch_alter_table(table, recreate="auto") as batch:
            batch.alter_column(require_identifier(after.name, "column name"), **kwargs)
