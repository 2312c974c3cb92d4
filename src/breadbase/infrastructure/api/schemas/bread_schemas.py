"""Pydantic schemas for the BREAD (CRUD metadata) endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from breadbase.domain.entities.relationship import RELATIONSHIP_TYPES, RelationshipRequest


class FieldRowSchema(BaseModel):
    """Per-field overrides submitted with a CRUD payload."""

    field: str
    type: str | None = None
    display_name: str | None = None
    required: bool | None = None
    browse: bool | None = None
    read: bool | None = None
    edit: bool | None = None
    add: bool | None = None
    delete: bool | None = None
    details: dict[str, Any] | None = None
    order: int | None = None


class CrudDetailsSchema(BaseModel):
    order_column: str | None = None
    order_direction: str | None = Field(default=None, pattern="^(asc|desc)$")
    order_display_column: str | None = None
    default_search_key: str | None = None


class CrudRequest(BaseModel):
    """Request body for creating or updating CRUD metadata.

    Only the keys actually sent are applied, so an update can change a
    single attribute.
    """

    name: str | None = Field(default=None, description="Table name (create only)")
    slug: str | None = None
    display_name_singular: str | None = None
    display_name_plural: str | None = None
    icon: str | None = None
    model_name: str | None = None
    policy_name: str | None = None
    controller: str | None = None
    description: str | None = None
    translatable: bool | None = None
    generate_permissions: bool | None = None
    server_side: bool | None = None
    details: CrudDetailsSchema | None = None
    fields: list[FieldRowSchema] | None = None
    translations: dict[str, dict[str, str]] | None = Field(
        default=None,
        description="Translated labels: column -> locale -> value",
    )

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(exclude_unset=True)
        if self.fields is not None:
            payload["fields"] = [row.model_dump(exclude_unset=True) for row in self.fields]
        return payload


class DataRowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    data_type_id: int
    field: str
    type: str
    display_name: str
    required: bool
    browse: bool
    read: bool
    edit: bool
    add: bool
    delete: bool
    details: dict[str, Any] | None = None
    order: int


class DataTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    display_name_singular: str
    display_name_plural: str
    icon: str | None = None
    model_name: str | None = None
    policy_name: str | None = None
    controller: str | None = None
    description: str | None = None
    translatable: bool
    generate_permissions: bool
    server_side: bool
    details: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DataTypeDetailResponse(DataTypeResponse):
    rows: list[DataRowResponse] = Field(default_factory=list)


class CrudDeleteResponse(BaseModel):
    id: int
    name: str
    removed: dict[str, int]


class RelationshipCreateRequest(BaseModel):
    """Request body for adding a relationship field."""

    data_type_id: int
    relationship_type: str = Field(..., pattern=f"^({'|'.join(RELATIONSHIP_TYPES)})$")
    table: str = Field(..., min_length=1, description="Related table")
    model: str = Field(..., min_length=1, description="Model identifier of the related table")
    column: str | None = None
    column_belongs_to: str | None = None
    key: str = "id"
    label: str | None = None
    pivot_table: str | None = None

    def to_request(self) -> RelationshipRequest:
        return RelationshipRequest(**self.model_dump())
