"""Database management service.

Orchestrates the schema operations exposed to operators: every call is
authorized with ``browse_database`` first, mutations are serialized per
table by the schema lock, and hooks fire once an operation succeeds.
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from breadbase.core.hooks import HookEvent, HookRegistry
from breadbase.core.logging import get_logger, log_context
from breadbase.domain.entities.hook_context import HookContext
from breadbase.domain.entities.table import Table, TableDefinition
from breadbase.domain.services.capability_checker import BROWSE_DATABASE, CapabilityChecker
from breadbase.domain.services.identifier_validator import IDENTIFIER_PATTERN
from breadbase.domain.services.schema_lock import NullSchemaLock, SchemaLock
from breadbase.domain.services.name_inflector import NameInflector
from breadbase.infrastructure.persistence.repositories import (
    DataTypeRepository,
    PermissionRepository,
)
from breadbase.infrastructure.persistence.schema_manager import SchemaManager
from breadbase.infrastructure.persistence.schema_updater import SchemaUpdater, UpdateResult
from breadbase.infrastructure.scaffolding import ModelScaffolder, ScaffoldResult

logger = get_logger(__name__)


@dataclass
class CreateTableResult:
    """A created table and the outcome of scaffolding its files."""

    table: Table
    scaffold: ScaffoldResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table.to_dict(),
            "scaffold": self.scaffold.to_dict() if self.scaffold else None,
        }


class DatabaseService:
    """Service behind the database management endpoints.

    Args:
        schema_manager: Introspector of the managed database.
        schema_updater: Applies create / update definitions.
        capability_checker: Authorizes each call.
        schema_lock: Serializes mutations of the same table.
        scaffolder: Writes model and migration files, if configured.
        hook_registry: Notified after successful mutations.
        session: Metadata store session. Lists are annotated with the CRUD
            metadata read through it, and renames re-key that metadata.
    """

    def __init__(
        self,
        schema_manager: SchemaManager,
        schema_updater: SchemaUpdater,
        capability_checker: CapabilityChecker,
        schema_lock: SchemaLock | None = None,
        scaffolder: ModelScaffolder | None = None,
        hook_registry: HookRegistry | None = None,
        session: AsyncSession | None = None,
    ) -> None:
        self.schema_manager = schema_manager
        self.schema_updater = schema_updater
        self.capability_checker = capability_checker
        self.schema_lock = schema_lock or NullSchemaLock()
        self.scaffolder = scaffolder
        self.hook_registry = hook_registry
        self.session = session
        self.data_types = DataTypeRepository(session) if session is not None else None
        self.permissions = PermissionRepository(session) if session is not None else None

    async def _authorize(self, principal: Any) -> None:
        await self.capability_checker.check(principal, BROWSE_DATABASE)

    async def list_tables(self, principal: Any) -> list[dict[str, Any]]:
        """List tables with the slug and id of their CRUD metadata, if any."""
        await self._authorize(principal)

        names = await self.schema_manager.list_table_names()
        data_types = {}
        if self.data_types is not None:
            data_types = {dt.name: dt for dt in await self.data_types.list_all()}

        tables = []
        for name in names:
            data_type = data_types.get(name)
            tables.append({
                "name": name,
                "slug": data_type.slug if data_type else None,
                "data_type_id": data_type.id if data_type else None,
            })
        return tables

    async def prepare(self, principal: Any, table_name: str | None = None) -> dict[str, Any]:
        """Form data for creating a table, or editing ``table_name``."""
        await self._authorize(principal)

        if table_name is None:
            action = "create"
            table = Table.for_create("new_table")
        else:
            action = "update"
            table = await self.schema_manager.describe_table(table_name)

        return {
            "action": action,
            "table": table.to_dict(),
            "types": self.schema_updater.type_registry.get_platform_types(),
            "identifier_regex": IDENTIFIER_PATTERN.pattern,
            "platform": self.schema_manager.get_platform_name(),
        }

    async def get_platform_types(self, principal: Any) -> dict[str, dict[str, Any]]:
        await self._authorize(principal)
        return self.schema_updater.type_registry.get_platform_types()

    async def describe(self, principal: Any, table_name: str) -> list[dict[str, Any]]:
        await self._authorize(principal)
        return await self.schema_manager.describe_columns(table_name)

    async def create_table(
        self,
        principal: Any,
        table: Table,
        create_model: bool = False,
        create_migration: bool = False,
        context: HookContext | None = None,
    ) -> CreateTableResult:
        """Create a table, then scaffold its model and migration if asked.

        Scaffolding failures are reported in the result; the table stays.
        """
        await self._authorize(principal)

        with log_context(table_name=table.name):
            async with self.schema_lock.hold(table.name):
                created = await self.schema_updater.create_table(table)

        scaffold = None
        if self.scaffolder is not None and (create_model or create_migration):
            scaffold = self.scaffolder.scaffold(
                created, model=create_model, migration=create_migration
            )

        await self._trigger(
            HookEvent.ON_TABLE_AFTER_CREATE, created.name, created.to_dict(), context
        )
        return CreateTableResult(table=created, scaffold=scaffold)

    async def update_table(
        self,
        principal: Any,
        definition: TableDefinition,
        context: HookContext | None = None,
    ) -> UpdateResult:
        await self._authorize(principal)

        with log_context(table_name=definition.original_name):
            async with self.schema_lock.hold(definition.original_name):
                result = await self.schema_updater.update(definition)
                if result.diff.new_name:
                    await self._rename_metadata(result.diff.table_name, result.diff.new_name)

        await self._trigger(
            HookEvent.ON_TABLE_AFTER_UPDATE,
            result.table.name,
            {"table": result.table.to_dict(), "diff": result.diff.to_dict()},
            context,
        )
        return result

    async def reorder_column(
        self,
        principal: Any,
        table_name: str,
        column: str,
        after: str | None = None,
        context: HookContext | None = None,
    ) -> UpdateResult:
        await self._authorize(principal)

        with log_context(table_name=table_name):
            async with self.schema_lock.hold(table_name):
                result = await self.schema_updater.reorder_column(table_name, column, after)

        await self._trigger(
            HookEvent.ON_TABLE_AFTER_UPDATE,
            result.table.name,
            {"table": result.table.to_dict(), "diff": result.diff.to_dict()},
            context,
        )
        return result

    async def drop_table(
        self, principal: Any, table_name: str, context: HookContext | None = None
    ) -> dict[str, Any]:
        """Drop a table.

        CRUD metadata of the table is left in place and reported as
        ``orphaned_data_type_id``; it is removed through the BREAD delete.
        """
        await self._authorize(principal)

        with log_context(table_name=table_name):
            async with self.schema_lock.hold(table_name):
                await self.schema_manager.drop_table(table_name)
                orphan = await self._orphaned_data_type(table_name)

        await self._trigger(
            HookEvent.ON_TABLE_AFTER_DELETE, table_name, {"name": table_name}, context
        )
        return {"name": table_name, "deleted": True, "orphaned_data_type_id": orphan}

    async def _rename_metadata(self, old_name: str, new_name: str) -> None:
        """Point the CRUD metadata and permissions of a table at its new name.

        A slug still derived from the old name follows the rename; a custom
        slug is kept.
        """
        if self.session is None:
            return

        data_type = await self.data_types.get_by_name(old_name)
        removed = await self.permissions.remove_for(old_name)
        if data_type is not None:
            data_type.name = new_name
            if data_type.slug == NameInflector.slug(old_name):
                data_type.slug = NameInflector.slug(new_name)
            await self.data_types.update(data_type)
            if data_type.generate_permissions:
                await self.permissions.generate_for(new_name)
        await self.session.commit()

        logger.info(
            "Table metadata renamed",
            new_name=new_name,
            data_type_id=data_type.id if data_type else None,
            permissions_removed=removed,
        )

    async def _orphaned_data_type(self, table_name: str) -> int | None:
        if self.data_types is None:
            return None
        data_type = await self.data_types.get_by_name(table_name)
        if data_type is None:
            return None
        logger.warning(
            "Dropped table still has CRUD metadata", data_type_id=data_type.id
        )
        return data_type.id

    async def _trigger(
        self,
        event: str,
        table_name: str,
        data: dict[str, Any],
        context: HookContext | None,
    ) -> None:
        if self.hook_registry is None:
            return
        await self.hook_registry.trigger(event, data, context, filters={"table": table_name})
