"""FastAPI dependencies for authentication and service construction.

Provides the bearer token principal and builds the services used by the
routers from the shared engine, the request session and app state.
"""

from dataclasses import dataclass, field
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from breadbase.core.config import get_settings
from breadbase.core.hooks import HookRegistry
from breadbase.core.logging import get_logger
from breadbase.domain.entities.hook_context import HookContext
from breadbase.domain.services import (
    BROWSE_DATABASE,
    CapabilityChecker,
    ClaimsCapabilityChecker,
    IdentifierValidator,
    ImportModelResolver,
    NullSchemaLock,
    SchemaLock,
)
from breadbase.domain.services.crud_service import CrudService
from breadbase.domain.services.database_service import DatabaseService
from breadbase.domain.services.relationship_service import RelationshipService
from breadbase.infrastructure.auth import (
    InvalidTokenError,
    TokenExpiredError,
    jwt_service,
)
from breadbase.infrastructure.persistence.database import get_db_manager, get_db_session
from breadbase.infrastructure.persistence.schema_manager import SchemaManager
from breadbase.infrastructure.persistence.schema_updater import SchemaUpdater
from breadbase.infrastructure.persistence.type_registry import get_type_registry
from breadbase.infrastructure.scaffolding import ModelScaffolder

logger = get_logger(__name__)


@dataclass
class CurrentUser:
    """The principal named by a valid access token."""

    user_id: str
    permissions: list[str] = field(default_factory=list)


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def bearer_token(authorization: str | None) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if authorization is None:
        raise unauthorized("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token or " " in token.strip():
        raise unauthorized("Could not validate credentials")
    return token.strip()


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Resolve the principal, answering 401 for any token problem."""
    try:
        claims = jwt_service.validate_access_token(bearer_token(authorization))
        return CurrentUser(
            user_id=str(claims["user_id"]),
            permissions=jwt_service.permissions_of(claims),
        )
    except HTTPException as e:
        logger.info("Authentication failed", reason=e.detail)
        raise
    except TokenExpiredError:
        logger.info("Authentication failed", reason="expired")
        raise unauthorized("Token has expired")
    except InvalidTokenError as e:
        logger.info("Authentication failed", reason=str(e))
        raise unauthorized(f"Invalid token: {e}")


AuthenticatedUser = Annotated[CurrentUser, Depends(get_current_user)]


def get_engine() -> AsyncEngine:
    return get_db_manager().engine


def get_hook_registry(request: Request) -> HookRegistry | None:
    return getattr(request.app.state, "hook_registry", None)


def get_schema_lock(request: Request) -> SchemaLock:
    return getattr(request.app.state, "schema_lock", None) or NullSchemaLock()


def get_capability_checker(request: Request) -> CapabilityChecker:
    # Tests and embedders may install their own checker on app state
    return getattr(request.app.state, "capability_checker", None) or ClaimsCapabilityChecker()


def get_hook_context(request: Request, current_user: AuthenticatedUser) -> HookContext:
    return HookContext(
        app=request.app,
        user_id=current_user.user_id,
        request_id=request.headers.get("X-Correlation-ID", ""),
    )


async def require_browse_database(
    current_user: AuthenticatedUser,
    checker: Annotated[CapabilityChecker, Depends(get_capability_checker)],
) -> CurrentUser:
    """Ensure the current principal may manage the database.

    Raises:
        CapabilityDenied: Mapped to 403 by the exception handlers.
    """
    await checker.check(current_user, BROWSE_DATABASE)
    return current_user


DatabaseOperator = Annotated[CurrentUser, Depends(require_browse_database)]


def get_identifier_validator() -> IdentifierValidator:
    return IdentifierValidator(get_settings().max_identifier_length)


def get_schema_manager(
    engine: Annotated[AsyncEngine, Depends(get_engine)],
) -> SchemaManager:
    return SchemaManager(
        engine,
        get_type_registry(engine.dialect.name),
        get_identifier_validator(),
    )


def get_database_service(
    request: Request,
    engine: Annotated[AsyncEngine, Depends(get_engine)],
    schema_manager: Annotated[SchemaManager, Depends(get_schema_manager)],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> DatabaseService:
    settings = get_settings()
    type_registry = get_type_registry(engine.dialect.name)
    return DatabaseService(
        schema_manager=schema_manager,
        schema_updater=SchemaUpdater(
            engine,
            type_registry,
            schema_manager.validator,
            schema_manager,
        ),
        capability_checker=get_capability_checker(request),
        schema_lock=get_schema_lock(request),
        scaffolder=ModelScaffolder(
            settings.scaffold_models_path,
            settings.scaffold_migrations_path,
            type_registry,
            base_module=f"{settings.models_namespace}.base",
        ),
        hook_registry=get_hook_registry(request),
        session=session,
    )


def get_crud_service(
    request: Request,
    schema_manager: Annotated[SchemaManager, Depends(get_schema_manager)],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> CrudService:
    return CrudService(
        session,
        schema_manager,
        hook_registry=get_hook_registry(request),
        validator=schema_manager.validator,
    )


def get_relationship_service(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> RelationshipService:
    return RelationshipService(
        session,
        model_resolver=ImportModelResolver(),
        hook_registry=get_hook_registry(request),
        schema_lock=get_schema_lock(request),
    )
