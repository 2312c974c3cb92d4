"""Alembic environment for the BREAD metadata tables.

Only the tables declared in ``breadbase.infrastructure.persistence.models``
are versioned here. User tables created through the database API are
left alone; they get their own scaffolded migrations.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context
from breadbase.core.config import get_settings
from breadbase.infrastructure.persistence import models  # noqa: F401
from breadbase.infrastructure.persistence.database import Base

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", get_settings().database_url)

target_metadata = Base.metadata


def metadata_tables_only(object, name, type_, reflected, compare_to):
    # A reflected table with no model counterpart is a user table
    return not (type_ == "table" and reflected and compare_to is None)


def configure_context(**options) -> None:
    url = config.get_main_option("sqlalchemy.url") or ""
    context.configure(
        target_metadata=target_metadata,
        render_as_batch=url.startswith("sqlite"),
        include_object=metadata_tables_only,
        **options,
    )


def run_offline() -> None:
    """Emit the migration SQL without connecting."""
    configure_context(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate(connection: Connection, owns_transaction: bool = True) -> None:
    configure_context(connection=connection)
    if not owns_transaction:
        context.run_migrations()
        return
    with context.begin_transaction():
        context.run_migrations()


async def migrate_async() -> None:
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(migrate)
    finally:
        await engine.dispose()


def run_online() -> None:
    # A caller may hand in its own connection, and its transaction with it
    shared = config.attributes.get("connection")
    if shared is not None:
        migrate(shared, owns_transaction=False)
    else:
        asyncio.run(migrate_async())


if context.is_offline_mode():
    run_offline()
else:
    run_online()
