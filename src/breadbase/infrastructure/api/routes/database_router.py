"""Database management API routes.

Lists, describes, creates, alters and drops physical tables. Every
route is authorized with ``browse_database`` by the database service.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status

from breadbase.core.logging import get_logger
from breadbase.domain.entities.hook_context import HookContext
from breadbase.domain.exceptions import BreadBaseError
from breadbase.domain.services.database_service import DatabaseService
from breadbase.infrastructure.api.dependencies import (
    AuthenticatedUser,
    get_database_service,
    get_hook_context,
)
from breadbase.infrastructure.api.schemas import (
    CreateTableRequest,
    CreateTableResponse,
    ReorderColumnRequest,
    TableListItem,
    TableListResponse,
    UpdateTableRequest,
    UpdateTableResponse,
)

logger = get_logger(__name__)

router = APIRouter()

Service = Annotated[DatabaseService, Depends(get_database_service)]
Context = Annotated[HookContext, Depends(get_hook_context)]


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=TableListResponse,
    responses={403: {"description": "browse_database permission required"}},
)
async def list_tables(current_user: AuthenticatedUser, service: Service) -> TableListResponse:
    """List the tables of the managed database with their BREAD slug, if any."""
    tables = await service.list_tables(current_user)
    return TableListResponse(
        items=[TableListItem(**table) for table in tables],
        total=len(tables),
    )


@router.get("/types", status_code=status.HTTP_200_OK)
async def get_platform_types(
    current_user: AuthenticatedUser, service: Service
) -> dict[str, dict[str, Any]]:
    """Column types available on the current database platform."""
    return await service.get_platform_types(current_user)


@router.get("/create", status_code=status.HTTP_200_OK)
async def prepare_create(current_user: AuthenticatedUser, service: Service) -> dict[str, Any]:
    """Starting definition for a new table, with an ``id`` primary key."""
    return await service.prepare(current_user)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=CreateTableResponse,
    responses={
        400: {"description": "Invalid identifier or unsupported type"},
        409: {"description": "Table already exists"},
    },
)
async def store_table(
    request: CreateTableRequest,
    current_user: AuthenticatedUser,
    service: Service,
    context: Context,
) -> CreateTableResponse:
    """Create a table, optionally scaffolding its model and migration."""
    payload = request.model_dump()
    try:
        result = await service.create_table(
            current_user,
            request.table.to_table(),
            create_model=request.create_model,
            create_migration=request.create_migration,
            context=context,
        )
    except BreadBaseError as e:
        raise e.with_payload(payload)

    logger.info("Table stored", table_name=result.table.name, user_id=current_user.user_id)
    return CreateTableResponse(**result.to_dict())


@router.get("/{table}/edit", status_code=status.HTTP_200_OK)
async def prepare_edit(
    table: str, current_user: AuthenticatedUser, service: Service
) -> dict[str, Any]:
    """Live definition of a table, for editing."""
    return await service.prepare(current_user, table)


@router.put(
    "/{table}",
    status_code=status.HTTP_200_OK,
    response_model=UpdateTableResponse,
    responses={
        404: {"description": "Table not found"},
        409: {"description": "Rename target already exists"},
        500: {"description": "Schema update failed"},
    },
)
async def update_table(
    table: str,
    request: UpdateTableRequest,
    current_user: AuthenticatedUser,
    service: Service,
    context: Context,
) -> UpdateTableResponse:
    """Alter a table to match the submitted definition."""
    payload = request.model_dump()
    try:
        result = await service.update_table(
            current_user, request.to_definition(table), context=context
        )
    except BreadBaseError as e:
        raise e.with_payload(payload)

    return UpdateTableResponse(
        table=result.table.to_dict(),
        diff=result.diff.to_dict(),
        operations=result.operations,
    )


@router.post(
    "/{table}/reorder",
    status_code=status.HTTP_200_OK,
    response_model=UpdateTableResponse,
)
async def reorder_column(
    table: str,
    request: ReorderColumnRequest,
    current_user: AuthenticatedUser,
    service: Service,
    context: Context,
) -> UpdateTableResponse:
    """Move a column first, or after another column."""
    try:
        result = await service.reorder_column(
            current_user, table, request.column, request.after, context=context
        )
    except BreadBaseError as e:
        raise e.with_payload(request.model_dump())

    return UpdateTableResponse(
        table=result.table.to_dict(),
        diff=result.diff.to_dict(),
        operations=result.operations,
    )


@router.get("/{table}", status_code=status.HTTP_200_OK)
async def show_table(
    table: str, current_user: AuthenticatedUser, service: Service
) -> list[dict[str, Any]]:
    """Describe the columns of a table."""
    return await service.describe(current_user, table)


@router.delete(
    "/{table}",
    status_code=status.HTTP_200_OK,
    responses={404: {"description": "Table not found"}},
)
async def destroy_table(
    table: str,
    current_user: AuthenticatedUser,
    service: Service,
    context: Context,
) -> dict[str, Any]:
    """Drop a table, reporting CRUD metadata it leaves behind."""
    result = await service.drop_table(current_user, table, context=context)
    logger.info("Table destroyed", table_name=table, user_id=current_user.user_id)
    return result
