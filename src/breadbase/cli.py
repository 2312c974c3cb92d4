"""breadbase command line: serve the API, inspect tables, mint tokens."""

import asyncio
import json
from typing import Any, Awaitable, Callable, NoReturn

import click

from breadbase.core.config import get_settings
from breadbase.core.logging import configure_logging, get_logger


@click.group()
@click.version_option(version="0.1.0", prog_name="BreadBase")
def cli() -> None:
    """BreadBase - schema-to-CRUD (BREAD) engine.

    Create, alter and drop tables of a live database and describe how
    each table is browsed, read, edited, added and deleted.
    """


@cli.command()
@click.option("--host", type=str, default=None, help="Host to bind to (overrides config)")
@click.option("--port", type=int, default=None, help="Port to bind to (overrides config)")
@click.option(
    "--reload/--no-reload",
    default=None,
    help="Enable auto-reload (defaults to on in development)",
)
def serve(host: str | None, port: int | None, reload: bool | None) -> None:
    """Start the BreadBase API server."""
    import uvicorn

    settings = get_settings()
    bind_host = host or settings.host
    bind_port = port or settings.port
    if reload is None:
        reload = settings.is_development

    configure_logging(settings)
    logger = get_logger(__name__)
    logger.info(
        "Starting BreadBase server",
        host=bind_host,
        port=bind_port,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "breadbase.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


def with_database(operation: Callable[[], Awaitable[Any]]) -> Any:
    """Run one async operation against the managed database, then dispose of it."""
    from breadbase.infrastructure.persistence.database import close_database

    configure_logging(get_settings())

    async def run() -> Any:
        try:
            return await operation()
        finally:
            await close_database()

    return asyncio.run(run())


def _database_service():
    from breadbase.domain.services import AllowAllCapabilityChecker, IdentifierValidator
    from breadbase.domain.services.database_service import DatabaseService
    from breadbase.infrastructure.persistence.database import get_db_manager
    from breadbase.infrastructure.persistence.schema_manager import SchemaManager
    from breadbase.infrastructure.persistence.schema_updater import SchemaUpdater

    engine = get_db_manager().engine
    validator = IdentifierValidator(get_settings().max_identifier_length)
    schema_manager = SchemaManager(engine, validator=validator)
    return DatabaseService(
        schema_manager=schema_manager,
        schema_updater=SchemaUpdater(engine, validator=validator, schema_manager=schema_manager),
        capability_checker=AllowAllCapabilityChecker(),
    )


@cli.command()
def tables() -> None:
    """List the tables of the managed database."""
    for table in with_database(lambda: _database_service().list_tables(None)):
        click.echo(table["name"])


@cli.command()
@click.argument("table")
def describe(table: str) -> None:
    """Describe the columns of TABLE as JSON."""
    from breadbase.domain.exceptions import BreadBaseError

    try:
        columns = with_database(lambda: _database_service().describe(None, table))
    except BreadBaseError as e:
        raise click.ClickException(e.message)
    click.echo(json.dumps(columns, indent=2, default=str))


@cli.command("create-token")
@click.option("--user-id", default="operator", show_default=True, help="Token subject")
@click.option(
    "--permission",
    "permissions",
    multiple=True,
    default=("browse_database",),
    show_default=True,
    help="Permission to grant; repeat for several, '*' grants all",
)
@click.option("--expires-minutes", type=int, default=None, help="Token lifetime in minutes")
def create_token(user_id: str, permissions: tuple[str, ...], expires_minutes: int | None) -> None:
    """Print an access token for the API."""
    from datetime import timedelta

    from breadbase.infrastructure.auth import jwt_service

    expires_delta = timedelta(minutes=expires_minutes) if expires_minutes else None
    click.echo(jwt_service.create_access_token(user_id, list(permissions), expires_delta))


@cli.command("init-db")
@click.option("--force", is_flag=True, help="Skip the production safety check")
def init_db(force: bool) -> None:
    """Create BreadBase's metadata tables. Use migrations in production."""
    from breadbase.infrastructure.persistence import models  # noqa: F401
    from breadbase.infrastructure.persistence.database import get_db_manager, sqlite_directory

    settings = get_settings()
    if settings.is_production and not force:
        raise click.ClickException("refusing to run in production; apply the alembic migrations instead")

    directory = sqlite_directory(settings.database_url)
    if directory is not None:
        directory.mkdir(parents=True, exist_ok=True)

    with_database(lambda: get_db_manager().create_tables())
    click.echo("Metadata tables created.")


@cli.command()
def info() -> None:
    """Show the active configuration."""
    settings = get_settings()
    click.echo(f"{settings.app_name} v{settings.app_version}")
    click.echo(f"Environment: {settings.environment}")
    click.echo(f"Database: {settings.database_url}")
    click.echo(f"API prefix: {settings.api_prefix}")
    click.echo(f"Schema lock: {settings.schema_lock}")


def main() -> NoReturn:
    cli()


if __name__ == "__main__":
    main()
