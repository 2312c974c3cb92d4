"""Pydantic schemas for API request/response validation."""

from breadbase.infrastructure.api.schemas.bread_schemas import (
    CrudDeleteResponse,
    CrudDetailsSchema,
    CrudRequest,
    DataRowResponse,
    DataTypeDetailResponse,
    DataTypeResponse,
    FieldRowSchema,
    RelationshipCreateRequest,
)
from breadbase.infrastructure.api.schemas.database_schemas import (
    ColumnSchema,
    CreateTableRequest,
    CreateTableResponse,
    ForeignKeySchema,
    IndexSchema,
    PrimaryKeySchema,
    ReorderColumnRequest,
    TableListItem,
    TableListResponse,
    TableSchema,
    UpdateTableRequest,
    UpdateTableResponse,
)

__all__ = [
    "ColumnSchema",
    "CreateTableRequest",
    "CreateTableResponse",
    "CrudDeleteResponse",
    "CrudDetailsSchema",
    "CrudRequest",
    "DataRowResponse",
    "DataTypeDetailResponse",
    "DataTypeResponse",
    "FieldRowSchema",
    "ForeignKeySchema",
    "IndexSchema",
    "PrimaryKeySchema",
    "RelationshipCreateRequest",
    "ReorderColumnRequest",
    "TableListItem",
    "TableListResponse",
    "TableSchema",
    "UpdateTableRequest",
    "UpdateTableResponse",
]
