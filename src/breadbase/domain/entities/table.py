"""In-memory table model used to create and alter physical tables.

A Table is built either fresh (the "create" flow) or from live
introspection (the "update" flow). Building it performs no I/O; the
schema updater turns it into DDL.
"""

import copy
from dataclasses import dataclass, field
from typing import Any

from breadbase.domain.exceptions import DuplicateColumn, DuplicateIndex, UnknownColumn

# Option keys accepted by add_column / change_column. Anything else is ignored.
COLUMN_OPTION_KEYS = frozenset({
    "nullable",
    "default",
    "unsigned",
    "autoincrement",
    "length",
    "precision",
    "scale",
    "comment",
    "original_name",
})

DEFAULT_PRIMARY_KEY_NAME = "primary"


@dataclass
class Column:
    """A single column of a Table.

    Attributes:
        name: Column name.
        type: Portable type name (see TypeRegistry).
        nullable: Whether NULL is allowed.
        default: Default value, or None for no default.
        unsigned: Unsigned flag for numeric types.
        autoincrement: Whether the database assigns values.
        length: Length for string-like types.
        precision: Precision for decimal types.
        scale: Scale for decimal types.
        comment: Free-text column comment.
        original_name: Name of the live column this one replaces, set on
            update payloads to mark an explicit rename.
    """

    name: str
    type: str
    nullable: bool = True
    default: Any = None
    unsigned: bool = False
    autoincrement: bool = False
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    comment: str | None = None
    original_name: str | None = None

    def apply_options(self, options: dict[str, Any]) -> None:
        """Apply known option keys, ignoring the rest."""
        if "notnull" in options and "nullable" not in options:
            options = {**options, "nullable": not options["notnull"]}
        for key, value in options.items():
            if key in COLUMN_OPTION_KEYS:
                setattr(self, key, value)
        if "type" in options and options["type"]:
            self.type = str(options["type"]).lower()

    def to_dict(self) -> dict[str, Any]:
        data = {
            "name": self.name,
            "type": self.type,
            "nullable": self.nullable,
            "default": self.default,
            "unsigned": self.unsigned,
            "autoincrement": self.autoincrement,
            "length": self.length,
            "precision": self.precision,
            "scale": self.scale,
            "comment": self.comment,
        }
        if self.original_name is not None:
            data["original_name"] = self.original_name
        return data


@dataclass
class Index:
    """A secondary index."""

    name: str
    columns: list[str]
    unique: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "columns": list(self.columns), "unique": self.unique}


@dataclass
class ForeignKey:
    """A foreign key constraint from this table to another."""

    columns: list[str]
    foreign_table: str
    foreign_columns: list[str]
    name: str | None = None
    on_delete: str | None = None
    on_update: str | None = None

    @property
    def label(self) -> str:
        """The constraint name, or a description of an unnamed key."""
        if self.name:
            return self.name
        return f"({', '.join(self.columns)}) -> {self.foreign_table}"

    def signature(self) -> tuple:
        """Name-independent identity, used to match unnamed constraints."""
        return (
            tuple(self.columns),
            self.foreign_table,
            tuple(self.foreign_columns),
            (self.on_delete or "").upper(),
            (self.on_update or "").upper(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": list(self.columns),
            "foreign_table": self.foreign_table,
            "foreign_columns": list(self.foreign_columns),
            "on_delete": self.on_delete,
            "on_update": self.on_update,
        }


@dataclass
class PrimaryKey:
    columns: list[str]
    name: str | None = DEFAULT_PRIMARY_KEY_NAME

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "columns": list(self.columns)}


@dataclass
class Table:
    """In-memory representation of a table being created or altered.

    Column order is significant: it is the order columns appear in the
    generated DDL.
    """

    name: str
    columns: list[Column] = field(default_factory=list)
    primary_key: PrimaryKey | None = None
    indexes: list[Index] = field(default_factory=list)
    foreign_keys: list[ForeignKey] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_create(cls, name: str) -> "Table":
        """Build the starting table for the "create" flow.

        The table carries an ``id`` column (integer, unsigned, not null,
        autoincrement) as its primary key.
        """
        table = cls(name=name)
        table.add_column(
            "id",
            "integer",
            {"unsigned": True, "nullable": False, "autoincrement": True},
        )
        table.set_primary_key(["id"], DEFAULT_PRIMARY_KEY_NAME)
        return table

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    def _find(self, name: str) -> int | None:
        lowered = name.lower()
        for position, column in enumerate(self.columns):
            if column.name.lower() == lowered:
                return position
        return None

    def has_column(self, name: str) -> bool:
        return self._find(name) is not None

    def get_column(self, name: str) -> Column:
        position = self._find(name)
        if position is None:
            raise UnknownColumn(self.name, name)
        return self.columns[position]

    def add_column(self, name: str, type: str, options: dict[str, Any] | None = None) -> Column:
        """Append a column.

        Args:
            name: Column name, unique within the table (case-insensitive).
            type: Portable type name.
            options: Column options; omitted ones default to nullable=True,
                unsigned=False, autoincrement=False. Unknown keys are ignored.

        Raises:
            DuplicateColumn: If a column with this name already exists.
        """
        if self.has_column(name):
            raise DuplicateColumn(self.name, name)

        column = Column(name=name, type=str(type).lower())
        column.apply_options(dict(options or {}))
        self.columns.append(column)
        return column

    def change_column(self, name: str, options: dict[str, Any]) -> Column:
        column = self.get_column(name)
        column.apply_options(dict(options))
        return column

    def remove_column(self, name: str) -> None:
        """Remove a column together with the indexes and keys that use it."""
        column = self.get_column(name)
        self.columns.remove(column)
        self.indexes = [i for i in self.indexes if column.name not in i.columns]
        self.foreign_keys = [fk for fk in self.foreign_keys if column.name not in fk.columns]
        if self.primary_key and column.name in self.primary_key.columns:
            remaining = [c for c in self.primary_key.columns if c != column.name]
            self.primary_key = PrimaryKey(remaining, self.primary_key.name) if remaining else None

    def rename_column(self, old_name: str, new_name: str) -> Column:
        column = self.get_column(old_name)
        if new_name.lower() != old_name.lower() and self.has_column(new_name):
            raise DuplicateColumn(self.name, new_name)

        previous = column.name
        column.name = new_name

        def rename(names: list[str]) -> list[str]:
            return [new_name if n == previous else n for n in names]

        if self.primary_key:
            self.primary_key.columns = rename(self.primary_key.columns)
        for index in self.indexes:
            index.columns = rename(index.columns)
        for foreign_key in self.foreign_keys:
            foreign_key.columns = rename(foreign_key.columns)
        return column

    def move_column(self, name: str, after: str | None = None) -> None:
        """Move a column to the front, or directly after another column."""
        column = self.get_column(name)
        if after is not None:
            self.get_column(after)
        self.columns.remove(column)
        if after is None:
            self.columns.insert(0, column)
        else:
            self.columns.insert(self._find(after) + 1, column)

    def set_primary_key(self, columns: list[str], name: str | None = DEFAULT_PRIMARY_KEY_NAME) -> None:
        """Designate the primary key.

        Raises:
            UnknownColumn: If any referenced column is not in the table.
        """
        resolved = [self.get_column(column).name for column in columns]
        self.primary_key = PrimaryKey(resolved, name)

    def drop_primary_key(self) -> None:
        self.primary_key = None

    def get_index(self, name: str) -> Index | None:
        for index in self.indexes:
            if index.name == name:
                return index
        return None

    def add_index(self, columns: list[str], name: str | None = None, unique: bool = False) -> Index:
        resolved = [self.get_column(column).name for column in columns]
        if name is None:
            suffix = "unique" if unique else "index"
            name = f"{self.name}_{'_'.join(resolved)}_{suffix}"
        if self.get_index(name) is not None:
            raise DuplicateIndex(self.name, name)
        index = Index(name=name, columns=resolved, unique=unique)
        self.indexes.append(index)
        return index

    def drop_index(self, name: str) -> None:
        self.indexes = [i for i in self.indexes if i.name != name]

    def add_foreign_key(
        self,
        columns: list[str],
        foreign_table: str,
        foreign_columns: list[str],
        name: str | None = None,
        on_delete: str | None = None,
        on_update: str | None = None,
        generate_name: bool = True,
    ) -> ForeignKey:
        """Add a foreign key.

        An omitted name defaults to ``{table}_{columns}_foreign`` unless
        ``generate_name`` is off, as for keys reflected without a name.
        """
        resolved = [self.get_column(column).name for column in columns]
        if name is None and generate_name:
            name = f"{self.name}_{'_'.join(resolved)}_foreign"
        foreign_key = ForeignKey(
            columns=resolved,
            foreign_table=foreign_table,
            foreign_columns=list(foreign_columns),
            name=name,
            on_delete=on_delete,
            on_update=on_update,
        )
        self.foreign_keys.append(foreign_key)
        return foreign_key

    def drop_foreign_key(self, name: str) -> None:
        self.foreign_keys = [fk for fk in self.foreign_keys if fk.name != name]

    def copy(self) -> "Table":
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "columns": [column.to_dict() for column in self.columns],
            "primary_key": self.primary_key.to_dict() if self.primary_key else None,
            "indexes": [index.to_dict() for index in self.indexes],
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
            "options": dict(self.options),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Table":
        """Build a table from a submitted definition.

        Raises:
            DuplicateColumn: If two columns share a name.
            UnknownColumn: If a key or index names a missing column.
        """
        table = cls(name=data["name"], options=dict(data.get("options") or {}))

        for column_data in data.get("columns") or []:
            options = {k: v for k, v in column_data.items() if k not in ("name", "type")}
            table.add_column(column_data["name"], column_data["type"], options)

        primary_key = data.get("primary_key")
        if primary_key and primary_key.get("columns"):
            table.set_primary_key(
                primary_key["columns"], primary_key.get("name", DEFAULT_PRIMARY_KEY_NAME)
            )

        for index_data in data.get("indexes") or []:
            table.add_index(
                index_data["columns"],
                name=index_data.get("name"),
                unique=bool(index_data.get("unique", False)),
            )

        for fk_data in data.get("foreign_keys") or []:
            table.add_foreign_key(
                fk_data["columns"],
                fk_data["foreign_table"],
                fk_data["foreign_columns"],
                name=fk_data.get("name"),
                on_delete=fk_data.get("on_delete"),
                on_update=fk_data.get("on_update"),
            )

        return table


@dataclass
class TableDefinition:
    """An update payload: the submitted table plus the live name it replaces.

    A table rename is expressed only by ``original_name`` differing from
    ``table.name``; it is never inferred.
    """

    original_name: str
    table: Table

    @property
    def is_rename(self) -> bool:
        return self.original_name != self.table.name

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TableDefinition":
        table = Table.from_dict(data)
        return cls(original_name=data.get("original_name") or table.name, table=table)
