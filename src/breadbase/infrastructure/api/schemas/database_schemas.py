"""Pydantic schemas for the database management endpoints.

Names are accepted as plain strings here; identifier validation happens
in the schema updater so that the error response can carry the payload.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from breadbase.domain.entities.table import Table, TableDefinition


class ColumnSchema(BaseModel):
    """A column of a submitted table definition."""

    name: str = Field(..., min_length=1, description="Column name")
    type: str = Field(..., min_length=1, description="Portable type name, e.g. string")
    nullable: bool = True
    default: Any = None
    unsigned: bool = False
    autoincrement: bool = False
    length: int | None = Field(default=None, ge=1)
    precision: int | None = Field(default=None, ge=1)
    scale: int | None = Field(default=None, ge=0)
    comment: str | None = None
    original_name: str | None = Field(
        default=None,
        description="Live column this one replaces; set to rename a column",
    )

    @model_validator(mode="before")
    @classmethod
    def accept_notnull(cls, data: Any) -> Any:
        """Accept ``notnull`` as the inverse of ``nullable``."""
        if isinstance(data, dict) and "notnull" in data and "nullable" not in data:
            data = {**data, "nullable": not data["notnull"]}
        return data

    @field_validator("type")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        return v.lower()


class IndexSchema(BaseModel):
    name: str | None = None
    columns: list[str] = Field(..., min_length=1)
    unique: bool = False


class ForeignKeySchema(BaseModel):
    name: str | None = None
    columns: list[str] = Field(..., min_length=1)
    foreign_table: str
    foreign_columns: list[str] = Field(..., min_length=1)
    on_delete: str | None = None
    on_update: str | None = None


class PrimaryKeySchema(BaseModel):
    columns: list[str] = Field(..., min_length=1)
    name: str | None = "primary"


class TableSchema(BaseModel):
    """A full table definition as edited in the table designer."""

    name: str = Field(..., min_length=1, description="Table name")
    columns: list[ColumnSchema] = Field(default_factory=list)
    primary_key: PrimaryKeySchema | None = None
    indexes: list[IndexSchema] = Field(default_factory=list)
    foreign_keys: list[ForeignKeySchema] = Field(default_factory=list)
    options: dict[str, Any] = Field(default_factory=dict)

    def to_table(self) -> Table:
        return Table.from_dict(self.model_dump())


class CreateTableRequest(BaseModel):
    """Request body for creating a table."""

    table: TableSchema
    create_model: bool = Field(default=False, description="Scaffold a model module")
    create_migration: bool = Field(default=False, description="Scaffold a migration module")


class UpdateTableRequest(BaseModel):
    """Request body for altering a table.

    ``original_name`` defaults to the table name in the URL. A different
    ``table.name`` renames the table.
    """

    table: TableSchema
    original_name: str | None = None

    def to_definition(self, original_name: str) -> TableDefinition:
        return TableDefinition(self.original_name or original_name, self.table.to_table())


class ReorderColumnRequest(BaseModel):
    column: str = Field(..., min_length=1)
    after: str | None = Field(
        default=None,
        description="Column to place it after; omit to move it first",
    )


class TableListItem(BaseModel):
    name: str
    slug: str | None = None
    data_type_id: int | None = None


class TableListResponse(BaseModel):
    items: list[TableListItem]
    total: int


class CreateTableResponse(BaseModel):
    table: dict[str, Any]
    scaffold: dict[str, Any] | None = None


class UpdateTableResponse(BaseModel):
    table: dict[str, Any]
    diff: dict[str, Any]
    operations: list[str]
