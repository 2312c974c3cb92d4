"""FastAPI application factory.

Wires the database and BREAD routers, the domain error handlers, the
correlation-ID middleware and the shared app state (hook registry,
schema lock, capability checker).
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from breadbase.core.config import Settings, get_settings
from breadbase.core.hooks import HookEvent, HookRegistry
from breadbase.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
)
from breadbase.domain.entities.hook_context import HookContext
from breadbase.domain.exceptions import (
    BreadBaseError,
    CapabilityDenied,
    CrudAlreadyExists,
    NotFound,
    PartialDeleteFailure,
    SchemaNotFound,
    SchemaUpdateFailed,
    TableAlreadyExists,
)
from breadbase.domain.services import ClaimsCapabilityChecker, build_schema_lock
from breadbase.infrastructure.persistence.database import (
    close_database,
    get_db_manager,
    init_database,
)

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Errors not listed here are client errors (400)
ERROR_STATUS_CODES: dict[type[BreadBaseError], int] = {
    CapabilityDenied: 403,
    SchemaNotFound: 404,
    NotFound: 404,
    TableAlreadyExists: 409,
    CrudAlreadyExists: 409,
    SchemaUpdateFailed: 500,
    PartialDeleteFailure: 500,
}


def status_code_for(exc: BreadBaseError) -> int:
    for error_class in type(exc).__mro__:
        if error_class in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[error_class]
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize the database and fire the lifecycle hooks."""
    settings = get_settings()
    configure_logging(settings)
    logger.info("Starting BreadBase", version=settings.app_version, environment=settings.environment)

    await init_database()
    registry: HookRegistry = app.state.hook_registry
    await registry.trigger(HookEvent.ON_BOOTSTRAP, context=HookContext(app=app))

    yield

    await registry.trigger(HookEvent.ON_TERMINATE, context=HookContext(app=app))
    await close_database()
    logger.info("BreadBase stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    docs_enabled = settings.is_development

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Schema-to-CRUD (BREAD) engine",
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        lifespan=lifespan,
    )

    app.state.hook_registry = HookRegistry()
    app.state.schema_lock = build_schema_lock(settings.schema_lock)
    app.state.capability_checker = ClaimsCapabilityChecker()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_health_check(app, settings)
    register_routes(app, settings)
    register_exception_handlers(app, settings)
    register_middleware(app)
    return app


def register_health_check(app: FastAPI, settings: Settings) -> None:
    service = {"service": settings.app_name, "version": settings.app_version}

    @app.get("/health", tags=["health"])
    async def health_check():
        return {"status": "healthy", **service}

    @app.get("/ready", tags=["health"])
    async def readiness_check():
        """503 while the managed database is unreachable."""
        if await get_db_manager().check_connection():
            return {"status": "ready", "database": "connected", **service}
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "database": "disconnected", **service},
        )


def register_routes(app: FastAPI, settings: Settings) -> None:
    from breadbase.infrastructure.api.routes import bread_router, database_router

    database_prefix = f"{settings.api_prefix}/database"

    # /bread must be matched before the database router's /{table} routes
    app.include_router(bread_router, prefix=f"{database_prefix}/bread", tags=["bread"])
    app.include_router(database_router, prefix=database_prefix, tags=["database"])

    @app.get(settings.api_prefix, tags=["root"])
    async def api_root():
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "api_version": "v1",
            "endpoints": {"database": database_prefix, "bread": f"{database_prefix}/bread"},
        }


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(BreadBaseError)
    async def breadbase_exception_handler(request: Request, exc: BreadBaseError):
        """Domain errors carry the submitted payload back for re-submission."""
        status_code = status_code_for(exc)
        log = logger.error if status_code >= 500 else logger.info
        log(
            "Request failed",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            error=exc.code,
            message=exc.message,
        )
        return JSONResponse(status_code=status_code, content=jsonable_encoder(exc.to_dict()))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception",
            method=request.method,
            path=request.url.path,
            exc_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": str(exc) if settings.debug else "An unexpected error occurred",
                "details": {},
                "payload": None,
            },
        )


def register_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        """Tag every log event of a request with its correlation ID."""
        correlation_id = request.headers.get(CORRELATION_HEADER) or f"cid_{uuid.uuid4().hex[:12]}"
        bind_correlation_id(correlation_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            clear_context()


app = create_app()
