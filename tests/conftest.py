"""Pytest configuration for all tests."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from breadbase.core.logging import get_logger
from breadbase.domain.services import IdentifierValidator
from breadbase.infrastructure.auth.jwt_service import jwt_service
from breadbase.infrastructure.persistence import models  # noqa: F401
from breadbase.infrastructure.persistence.database import Base, build_engine
from breadbase.infrastructure.persistence.schema_manager import SchemaManager
from breadbase.infrastructure.persistence.schema_updater import SchemaUpdater
from breadbase.infrastructure.persistence.type_registry import get_type_registry

logger = get_logger(__name__)


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine on a throwaway SQLite file with the metadata tables created.

    A file is used rather than ``:memory:`` so that schema operations and
    the metadata session run on separate connections, as they do when
    the application is served.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'breadbase.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def validator() -> IdentifierValidator:
    return IdentifierValidator()


@pytest.fixture
def schema_manager(engine: AsyncEngine, validator: IdentifierValidator) -> SchemaManager:
    return SchemaManager(engine, get_type_registry("sqlite"), validator)


@pytest.fixture
def schema_updater(
    engine: AsyncEngine, validator: IdentifierValidator, schema_manager: SchemaManager
) -> SchemaUpdater:
    return SchemaUpdater(engine, get_type_registry("sqlite"), validator, schema_manager)


@pytest_asyncio.fixture
async def products_table(engine: AsyncEngine) -> str:
    """A plain physical table with a primary key, defaults and an index."""
    async with engine.begin() as conn:
        await conn.execute(text(
            "CREATE TABLE products ("
            "id INTEGER NOT NULL, "
            "name VARCHAR(100) NOT NULL, "
            "price NUMERIC(10, 2), "
            "status VARCHAR(20) DEFAULT 'draft', "
            "in_stock BOOLEAN NOT NULL DEFAULT 1, "
            "created_at DATETIME, "
            "CONSTRAINT \"primary\" PRIMARY KEY (id))"
        ))
        await conn.execute(text("CREATE INDEX products_name_index ON products (name)"))
    return "products"


@pytest_asyncio.fixture
async def app(engine: AsyncEngine, session_factory):
    """A fresh application wired to the test database."""
    from breadbase.infrastructure.api.app import create_app
    from breadbase.infrastructure.api.dependencies import get_engine
    from breadbase.infrastructure.persistence.database import get_db_session

    application = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_engine] = lambda: engine
    application.dependency_overrides[get_db_session] = override_session
    yield application
    application.dependency_overrides = {}


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with overridden database dependencies."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def operator_token() -> str:
    """Access token holding the browse_database permission."""
    return jwt_service.create_access_token("operator", ["browse_database"])


@pytest.fixture
def viewer_token() -> str:
    """Access token without any database permission."""
    return jwt_service.create_access_token("viewer", ["browse_products"])


@pytest.fixture
def auth_headers(operator_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {operator_token}"}
