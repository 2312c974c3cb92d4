"""Engine and session management for the managed database.

BreadBase keeps its own metadata tables (data types, data rows,
permissions, translations) in the same database whose tables it
manages. Sessions serve the metadata; schema operations use the engine
directly.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from breadbase.core.config import Settings, get_settings
from breadbase.core.logging import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    """Declarative base of BreadBase's metadata tables."""


def enable_sqlite_transactional_ddl(engine: AsyncEngine) -> None:
    """Make DDL on a SQLite engine take part in transactions.

    pysqlite opens transactions lazily and never before DDL, so a failed
    ALTER cannot be rolled back. Turning off its transaction handling and
    emitting BEGIN ourselves puts every statement, DDL included, inside
    the connection's transaction.
    """
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    sync_engine.dialect.breadbase_transactional_ddl = True


def supports_transactional_ddl(engine: AsyncEngine) -> bool:
    """Whether a failed DDL statement can be rolled back on this engine."""
    dialect = engine.dialect
    if dialect.name == "postgresql":
        return True
    return bool(getattr(dialect, "breadbase_transactional_ddl", False))


def build_engine(
    database_url: str,
    echo: bool = False,
    transactional_ddl: bool = True,
    **kwargs,
) -> AsyncEngine:
    """Create an async engine, enabling transactional DDL on SQLite."""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_async_engine(database_url, echo=echo, **kwargs)
    if engine.dialect.name == "sqlite" and transactional_ddl:
        enable_sqlite_transactional_ddl(engine)
    return engine


def sqlite_directory(database_url: str) -> Path | None:
    """Directory holding a file-backed SQLite database, if any."""
    if not database_url.startswith("sqlite") or ":memory:" in database_url:
        return None
    return Path(database_url.split(":///", 1)[-1]).parent


class DatabaseManager:
    """Lazily builds the engine and session factory from settings."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            settings = self.settings
            pool_options = {}
            if not settings.database_url.startswith("sqlite"):
                pool_options = {
                    "pool_size": settings.db_pool_size,
                    "max_overflow": settings.db_max_overflow,
                    "pool_timeout": settings.db_pool_timeout,
                    "pool_recycle": settings.db_pool_recycle,
                }
            self._engine = build_engine(
                settings.database_url,
                echo=settings.db_echo,
                transactional_ddl=settings.db_sqlite_transactional_ddl,
                **pool_options,
            )
            logger.info(
                "Database engine created",
                database_url=self._engine.url.render_as_string(hide_password=True),
                transactional_ddl=supports_transactional_ddl(self._engine),
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    async def create_tables(self) -> None:
        """Create the metadata tables that are missing.

        Development only; deployed databases are migrated with alembic.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Metadata tables created")

    async def disconnect(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session scope; uncommitted work is rolled back on error."""
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database connection check failed", error=str(e))
            return False
        return True


_db_manager: DatabaseManager | None = None


def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a metadata session per request."""
    async with get_db_manager().session() as session:
        yield session


async def init_database() -> None:
    """Prepare the database at startup.

    Creates the SQLite directory, checks connectivity and, in development,
    creates the metadata tables.

    Raises:
        RuntimeError: If the database cannot be reached.
    """
    # Registers the metadata models on Base.metadata
    from breadbase.infrastructure.persistence import models  # noqa: F401

    db = get_db_manager()
    directory = sqlite_directory(db.settings.database_url)
    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)

    if not await db.check_connection():
        raise RuntimeError("Failed to connect to database")

    if db.settings.is_development:
        await db.create_tables()
    else:
        logger.info("Skipping metadata table creation, run alembic upgrade head")


async def close_database() -> None:
    await get_db_manager().disconnect()
