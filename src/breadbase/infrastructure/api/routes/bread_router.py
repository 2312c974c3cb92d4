"""BREAD (CRUD metadata) API routes.

Manages the data types and data rows that present a table as a
browse/read/edit/add/delete resource, and its relationship fields.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from breadbase.core.logging import get_logger
from breadbase.domain.entities.hook_context import HookContext
from breadbase.domain.exceptions import BreadBaseError
from breadbase.domain.services.crud_service import CrudService
from breadbase.domain.services.relationship_service import RelationshipService
from breadbase.infrastructure.api.dependencies import (
    DatabaseOperator,
    get_crud_service,
    get_hook_context,
    get_relationship_service,
)
from breadbase.infrastructure.api.schemas import (
    CrudDeleteResponse,
    CrudRequest,
    DataRowResponse,
    DataTypeDetailResponse,
    DataTypeResponse,
    RelationshipCreateRequest,
)

logger = get_logger(__name__)

router = APIRouter()

Crud = Annotated[CrudService, Depends(get_crud_service)]
Relationships = Annotated[RelationshipService, Depends(get_relationship_service)]
Context = Annotated[HookContext, Depends(get_hook_context)]


async def _detail(service: CrudService, data_type_id: int) -> DataTypeDetailResponse:
    data_type = await service.get(data_type_id)
    rows = await service.list_rows(data_type_id)
    response = DataTypeDetailResponse.model_validate(data_type)
    response.rows = [DataRowResponse.model_validate(row) for row in rows]
    return response


@router.get("", status_code=status.HTTP_200_OK, response_model=list[DataTypeResponse])
async def list_bread(current_user: DatabaseOperator, service: Crud) -> list[DataTypeResponse]:
    """List every table that has a BREAD definition."""
    return [DataTypeResponse.model_validate(dt) for dt in await service.list_all()]


@router.get("/{table}/create", status_code=status.HTTP_200_OK)
async def prepare_bread(
    table: str, current_user: DatabaseOperator, service: Crud
) -> dict[str, Any]:
    """Default BREAD definition for a table, with its column descriptions."""
    data = await service.prepopulate(table)
    data["field_options"] = await service.schema_manager.describe_columns(table)
    return data


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=DataTypeDetailResponse,
    responses={
        404: {"description": "Table not found"},
        409: {"description": "Table already has a BREAD definition"},
    },
)
async def store_bread(
    request: CrudRequest,
    current_user: DatabaseOperator,
    service: Crud,
    context: Context,
) -> DataTypeDetailResponse:
    """Create the BREAD definition of a table."""
    payload = request.to_payload()
    try:
        data_type = await service.create(payload, context)
    except BreadBaseError as e:
        raise e.with_payload(payload)

    logger.info("BREAD stored", table_name=data_type.name, user_id=current_user.user_id)
    return await _detail(service, data_type.id)


@router.get(
    "/{data_type_id}/edit",
    status_code=status.HTTP_200_OK,
    responses={404: {"description": "BREAD definition not found"}},
)
async def edit_bread(
    data_type_id: int, current_user: DatabaseOperator, service: Crud
) -> dict[str, Any]:
    """BREAD definition with its rows, translations and column descriptions."""
    detail = await _detail(service, data_type_id)
    field_options = []
    if await service.schema_manager.table_exists(detail.name):
        field_options = await service.schema_manager.describe_columns(detail.name)
    return {
        "data_type": detail.model_dump(mode="json"),
        "translations": await service.get_translations(data_type_id),
        "field_options": field_options,
    }


@router.put(
    "/{data_type_id}",
    status_code=status.HTTP_200_OK,
    response_model=DataTypeDetailResponse,
    responses={404: {"description": "BREAD definition not found"}},
)
async def update_bread(
    data_type_id: int,
    request: CrudRequest,
    current_user: DatabaseOperator,
    service: Crud,
    context: Context,
) -> DataTypeDetailResponse:
    """Update a BREAD definition."""
    payload = request.to_payload()
    try:
        await service.update(data_type_id, payload, context)
    except BreadBaseError as e:
        raise e.with_payload(payload)
    return await _detail(service, data_type_id)


@router.delete(
    "/{data_type_id}",
    status_code=status.HTTP_200_OK,
    response_model=CrudDeleteResponse,
    responses={
        404: {"description": "BREAD definition not found"},
        500: {"description": "A removal step failed and was rolled back"},
    },
)
async def delete_bread(
    data_type_id: int,
    current_user: DatabaseOperator,
    service: Crud,
    context: Context,
) -> CrudDeleteResponse:
    """Delete a BREAD definition with its rows, translations and permissions."""
    result = await service.delete(data_type_id, context)
    return CrudDeleteResponse(**result)


@router.get(
    "/{data_type_id}/relationships",
    status_code=status.HTTP_200_OK,
    response_model=list[DataRowResponse],
)
async def list_relationships(
    data_type_id: int, current_user: DatabaseOperator, service: Crud
) -> list[DataRowResponse]:
    rows = await service.list_relationships(data_type_id)
    return [DataRowResponse.model_validate(row) for row in rows]


@router.post(
    "/relationships",
    status_code=status.HTTP_201_CREATED,
    response_model=DataRowResponse,
    responses={
        400: {"description": "Related model does not exist"},
        404: {"description": "BREAD definition not found"},
    },
)
async def add_relationship(
    request: RelationshipCreateRequest,
    current_user: DatabaseOperator,
    service: Relationships,
    context: Context,
) -> DataRowResponse:
    """Add a relationship field to a BREAD definition."""
    try:
        row = await service.add_relationship(request.to_request(), context)
    except BreadBaseError as e:
        raise e.with_payload(request.model_dump())
    return DataRowResponse.model_validate(row)


@router.delete(
    "/relationships/{row_id}",
    status_code=status.HTTP_200_OK,
    responses={404: {"description": "Relationship not found"}},
)
async def delete_relationship(
    row_id: int,
    current_user: DatabaseOperator,
    service: Relationships,
    context: Context,
) -> dict[str, Any]:
    """Delete a relationship field."""
    await service.delete_relationship(row_id, context)
    return {"id": row_id, "deleted": True}
