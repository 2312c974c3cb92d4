"""Structural diff between a live table and a submitted definition.

``compute_diff`` and ``plan`` do no I/O. The plan orders operations so
that nothing references an object that no longer (or does not yet)
exist, and so that additive changes run before destructive ones:

    1. rename table            6. change columns
    2. drop foreign keys       7. drop / create primary key
    3. drop indexes            8. drop columns
    4. rename columns          9. create indexes
    5. add columns            10. create foreign keys

On SQLite a column reorder runs between steps 8 and 9.
"""

from dataclasses import dataclass, field
from typing import Any

from breadbase.core.logging import get_logger
from breadbase.domain.entities.table import (
    Column,
    ForeignKey,
    Index,
    PrimaryKey,
    Table,
    TableDefinition,
)
from breadbase.infrastructure.persistence.type_registry import TypeRegistry

logger = get_logger(__name__)

# Dialects that can rebuild a table to reorder its columns
REORDER_DIALECTS = ("sqlite",)


class OperationKind:
    RENAME_TABLE = "rename_table"
    DROP_FOREIGN_KEY = "drop_foreign_key"
    DROP_INDEX = "drop_index"
    RENAME_COLUMN = "rename_column"
    ADD_COLUMN = "add_column"
    CHANGE_COLUMN = "change_column"
    DROP_PRIMARY_KEY = "drop_primary_key"
    CREATE_PRIMARY_KEY = "create_primary_key"
    DROP_COLUMN = "drop_column"
    REORDER_COLUMNS = "reorder_columns"
    CREATE_INDEX = "create_index"
    CREATE_FOREIGN_KEY = "create_foreign_key"


@dataclass
class ColumnChange:
    """A column present on both sides whose definition differs.

    ``before`` carries the live name, ``after`` the submitted one.
    """

    before: Column
    after: Column
    changed: list[str]


@dataclass
class TableDiff:
    table_name: str
    new_name: str | None = None
    added_columns: list[Column] = field(default_factory=list)
    removed_columns: list[Column] = field(default_factory=list)
    renamed_columns: list[tuple[str, str]] = field(default_factory=list)
    changed_columns: list[ColumnChange] = field(default_factory=list)
    primary_key_before: PrimaryKey | None = None
    primary_key_after: PrimaryKey | None = None
    primary_key_changed: bool = False
    added_indexes: list[Index] = field(default_factory=list)
    removed_indexes: list[Index] = field(default_factory=list)
    added_foreign_keys: list[ForeignKey] = field(default_factory=list)
    removed_foreign_keys: list[ForeignKey] = field(default_factory=list)
    column_order: list[str] | None = None

    @property
    def final_name(self) -> str:
        return self.new_name or self.table_name

    @property
    def is_empty(self) -> bool:
        return not (
            self.new_name
            or self.added_columns
            or self.removed_columns
            or self.renamed_columns
            or self.changed_columns
            or self.primary_key_changed
            or self.added_indexes
            or self.removed_indexes
            or self.added_foreign_keys
            or self.removed_foreign_keys
            or self.column_order
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "table_name": self.table_name,
            "new_name": self.new_name,
            "added_columns": [c.name for c in self.added_columns],
            "removed_columns": [c.name for c in self.removed_columns],
            "renamed_columns": [list(pair) for pair in self.renamed_columns],
            "changed_columns": {c.after.name: c.changed for c in self.changed_columns},
            "primary_key_changed": self.primary_key_changed,
            "added_indexes": [i.name for i in self.added_indexes],
            "removed_indexes": [i.name for i in self.removed_indexes],
            "added_foreign_keys": [fk.label for fk in self.added_foreign_keys],
            "removed_foreign_keys": [fk.label for fk in self.removed_foreign_keys],
            "column_order": self.column_order,
        }


@dataclass
class SchemaOperation:
    """One DDL step of an update plan.

    Attributes:
        kind: One of the OperationKind values.
        table: Name of the table the step runs against.
        description: Human-readable summary used in logs and errors.
        column: Column definition for add/change steps.
        previous: Live column definition for change steps.
        old_name: Previous name for rename steps.
        new_name: New name for rename steps.
        index: Index for index steps.
        foreign_key: Foreign key for foreign key steps.
        primary_key: Primary key for primary key steps.
        changed: Changed attribute names for change steps.
        column_order: Full column order for reorder steps.
    """

    kind: str
    table: str
    description: str
    column: Column | None = None
    previous: Column | None = None
    old_name: str | None = None
    new_name: str | None = None
    index: Index | None = None
    foreign_key: ForeignKey | None = None
    primary_key: PrimaryKey | None = None
    column_order: list[str] | None = None
    changed: list[str] | None = None


def _effective_length(column: Column, registry: TypeRegistry) -> int | None:
    if not registry.has_type(column.type):
        return column.length
    spec = registry.get_spec(column.type)
    if not spec.supports_length:
        return None
    return column.length or spec.default_length


def _default_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def compare_columns(live: Column, target: Column, registry: TypeRegistry) -> list[str]:
    """Names of the attributes that differ between two column definitions.

    Autoincrement is not compared: it cannot be altered on an existing
    column. Unsigned and comments are only compared where the dialect
    stores them.
    """
    changed = []
    if live.type != target.type:
        changed.append("type")
    if live.nullable != target.nullable:
        changed.append("nullable")
    if _default_text(live.default) != _default_text(target.default):
        changed.append("default")
    if _effective_length(live, registry) != _effective_length(target, registry):
        changed.append("length")
    if registry.has_type(target.type) and registry.get_spec(target.type).supports_precision:
        if target.precision is not None and live.precision != target.precision:
            changed.append("precision")
        if target.scale is not None and live.scale != target.scale:
            changed.append("scale")
    if registry.dialect in ("mysql", "mariadb") and live.unsigned != target.unsigned:
        changed.append("unsigned")
    if registry.dialect != "sqlite" and (live.comment or None) != (target.comment or None):
        changed.append("comment")
    return changed


def compute_diff(live: Table, definition: TableDefinition, registry: TypeRegistry) -> TableDiff:
    """Compare a live table with the submitted definition.

    Renames are never inferred: a table rename needs ``original_name``
    on the definition, a column rename needs ``original_name`` on the
    column.
    """
    target = definition.table
    diff = TableDiff(table_name=live.name)
    if target.name != live.name:
        diff.new_name = target.name

    # live column name -> submitted column name
    matched: dict[str, str] = {}
    for column in target.columns:
        source = column.original_name or column.name
        if live.has_column(source) and live.get_column(source).name not in matched:
            live_column = live.get_column(source)
            matched[live_column.name] = column.name
            if live_column.name != column.name:
                diff.renamed_columns.append((live_column.name, column.name))
            changed = compare_columns(live_column, column, registry)
            if changed:
                diff.changed_columns.append(ColumnChange(live_column, column, changed))
        else:
            diff.added_columns.append(column)

    diff.removed_columns = [c for c in live.columns if c.name not in matched]

    def translate(names: list[str]) -> list[str]:
        return [matched.get(name, name) for name in names]

    removed = {c.name for c in diff.removed_columns}
    changed_names = {change.before.name for change in diff.changed_columns}

    live_pk = translate(live.primary_key.columns) if live.primary_key else []
    target_pk = target.primary_key.columns if target.primary_key else []
    diff.primary_key_before = live.primary_key
    diff.primary_key_after = target.primary_key
    diff.primary_key_changed = live_pk != target_pk

    target_indexes = {i.name: i for i in target.indexes}
    kept_indexes: set[str] = set()
    for index in live.indexes:
        wanted = target_indexes.get(index.name)
        if (
            wanted is not None
            and translate(index.columns) == wanted.columns
            and wanted.unique == index.unique
            and not removed.intersection(index.columns)
        ):
            kept_indexes.add(index.name)
        else:
            diff.removed_indexes.append(index)
    diff.added_indexes = [i for i in target.indexes if i.name not in kept_indexes]

    def fk_key(fk: ForeignKey, columns: list[str]) -> tuple:
        return (tuple(columns),) + fk.signature()[1:]

    target_fks = {fk_key(fk, fk.columns): fk for fk in target.foreign_keys}
    kept_fks: set[tuple] = set()
    for fk in live.foreign_keys:
        key = fk_key(fk, translate(fk.columns))
        touches = removed.union(changed_names).intersection(fk.columns)
        if key in target_fks and not touches:
            kept_fks.add(key)
        else:
            diff.removed_foreign_keys.append(fk)
    diff.added_foreign_keys = [
        fk for key, fk in target_fks.items() if key not in kept_fks
    ]

    # Order the table would have after the other steps: survivors, then additions
    expected = [matched[c.name] for c in live.columns if c.name in matched]
    expected += [c.name for c in diff.added_columns]
    submitted = [c.name for c in target.columns]
    if expected != submitted:
        diff.column_order = submitted

    return diff


def plan(diff: TableDiff, dialect: str) -> list[SchemaOperation]:
    """Order the changes of a diff into executable operations."""
    operations: list[SchemaOperation] = []
    table = diff.table_name

    if diff.new_name:
        operations.append(SchemaOperation(
            OperationKind.RENAME_TABLE,
            table,
            f"rename table '{table}' to '{diff.new_name}'",
            old_name=table,
            new_name=diff.new_name,
        ))
        table = diff.new_name

    for fk in diff.removed_foreign_keys:
        operations.append(SchemaOperation(
            OperationKind.DROP_FOREIGN_KEY,
            table,
            f"drop foreign key '{fk.label}'",
            foreign_key=fk,
        ))

    for index in diff.removed_indexes:
        operations.append(SchemaOperation(
            OperationKind.DROP_INDEX,
            table,
            f"drop index '{index.name}'",
            index=index,
        ))

    for old_name, new_name in diff.renamed_columns:
        operations.append(SchemaOperation(
            OperationKind.RENAME_COLUMN,
            table,
            f"rename column '{old_name}' to '{new_name}'",
            old_name=old_name,
            new_name=new_name,
        ))

    for column in diff.added_columns:
        operations.append(SchemaOperation(
            OperationKind.ADD_COLUMN,
            table,
            f"add column '{column.name}'",
            column=column,
        ))

    for change in diff.changed_columns:
        operations.append(SchemaOperation(
            OperationKind.CHANGE_COLUMN,
            table,
            f"change column '{change.after.name}' ({', '.join(change.changed)})",
            column=change.after,
            previous=change.before,
            changed=change.changed,
        ))

    if diff.primary_key_changed:
        if diff.primary_key_before is not None:
            operations.append(SchemaOperation(
                OperationKind.DROP_PRIMARY_KEY,
                table,
                "drop primary key",
                primary_key=diff.primary_key_before,
            ))
        if diff.primary_key_after is not None:
            operations.append(SchemaOperation(
                OperationKind.CREATE_PRIMARY_KEY,
                table,
                f"create primary key ({', '.join(diff.primary_key_after.columns)})",
                primary_key=diff.primary_key_after,
            ))

    for column in diff.removed_columns:
        operations.append(SchemaOperation(
            OperationKind.DROP_COLUMN,
            table,
            f"drop column '{column.name}'",
            column=column,
        ))

    if diff.column_order:
        if dialect in REORDER_DIALECTS:
            operations.append(SchemaOperation(
                OperationKind.REORDER_COLUMNS,
                table,
                "reorder columns",
                column_order=diff.column_order,
            ))
        else:
            logger.warning(
                "Column reordering is not supported on this dialect, skipping",
                table_name=table,
                dialect=dialect,
            )

    for index in diff.added_indexes:
        operations.append(SchemaOperation(
            OperationKind.CREATE_INDEX,
            table,
            f"create index '{index.name}'",
            index=index,
        ))

    for fk in diff.added_foreign_keys:
        operations.append(SchemaOperation(
            OperationKind.CREATE_FOREIGN_KEY,
            table,
            f"create foreign key '{fk.label}'",
            foreign_key=fk,
        ))

    return operations
