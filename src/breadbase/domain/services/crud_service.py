"""CRUD metadata service.

Manages the data type / data row records that describe how a physical
table is browsed, read, edited, added and deleted. Multi-step writes run
in the service's session transaction; the service commits or rolls back
itself.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from breadbase.core.config import Settings, get_settings
from breadbase.core.hooks import HookEvent, HookRegistry
from breadbase.core.logging import get_logger
from breadbase.domain.entities.hook_context import HookContext
from breadbase.domain.entities.table import Column, Table
from breadbase.domain.exceptions import (
    CrudAlreadyExists,
    NotFound,
    PartialDeleteFailure,
    SchemaNotFound,
)
from breadbase.domain.services.identifier_validator import IdentifierValidator
from breadbase.domain.services.name_inflector import NameInflector
from breadbase.infrastructure.persistence.models import DataRowModel, DataTypeModel
from breadbase.infrastructure.persistence.repositories import (
    DataRowRepository,
    DataTypeRepository,
    PermissionRepository,
    TranslationRepository,
)
from breadbase.infrastructure.persistence.schema_manager import SchemaManager

logger = get_logger(__name__)

DATA_TYPE_KEYS = (
    "slug",
    "display_name_singular",
    "display_name_plural",
    "icon",
    "model_name",
    "policy_name",
    "controller",
    "description",
    "translatable",
    "generate_permissions",
    "server_side",
)
# Data type keys backed by NOT NULL columns; an explicit null keeps the default
REQUIRED_DATA_TYPE_KEYS = frozenset({
    "slug",
    "display_name_singular",
    "display_name_plural",
    "translatable",
    "generate_permissions",
    "server_side",
})
DETAIL_KEYS = ("order_column", "order_direction", "order_display_column", "default_search_key")
ROW_KEYS = (
    "type",
    "display_name",
    "required",
    "browse",
    "read",
    "edit",
    "add",
    "delete",
    "details",
    "order",
)
TRANSLATABLE_COLUMNS = ("display_name_singular", "display_name_plural")
TIMESTAMP_COLUMNS = ("created_at", "updated_at", "deleted_at")

# Portable column type -> semantic field type
FIELD_TYPES = {
    "integer": "number",
    "smallint": "number",
    "bigint": "number",
    "tinyint": "number",
    "mediumint": "number",
    "decimal": "number",
    "float": "number",
    "real": "number",
    "boolean": "checkbox",
    "text": "text_area",
    "mediumtext": "text_area",
    "longtext": "text_area",
    "date": "date",
    "datetime": "timestamp",
    "time": "time",
    "json": "code_editor",
    "jsonb": "code_editor",
}

DELETE_STEPS = ("translations", "field_rows", "data_type", "permissions")


class TranslationStore(Protocol):
    async def save_translations(
        self, table_name: str, foreign_key: int, values: dict[str, dict[str, str]]
    ) -> None: ...

    async def get_translations(
        self, table_name: str, foreign_key: int
    ) -> dict[str, dict[str, str]]: ...

    async def delete_translations(self, table_name: str, foreign_keys: list[int]) -> int: ...


def default_row_for(column: Column, table: Table, order: int) -> dict[str, Any]:
    """Default field row for a physical column."""
    is_key = column.autoincrement and table.primary_key and column.name in table.primary_key.columns
    is_timestamp = column.name in TIMESTAMP_COLUMNS
    return {
        "field": column.name,
        "type": FIELD_TYPES.get(column.type, "text"),
        "display_name": NameInflector.title(column.name),
        "required": not column.nullable and column.default is None and not is_key,
        "browse": not is_key,
        "read": not is_key,
        "edit": not (is_key or is_timestamp),
        "add": not (is_key or is_timestamp),
        "delete": not is_key,
        "details": {},
        "order": order,
    }


class CrudService:
    """Service for CRUD metadata.

    Args:
        session: SQLAlchemy async session for the metadata tables.
        schema_manager: Introspector used to check and describe tables.
        translation_store: Store for translated labels. Defaults to the
            translations table in the same session.
        settings: Application settings.
        hook_registry: Optional registry notified after each change.
    """

    def __init__(
        self,
        session: AsyncSession,
        schema_manager: SchemaManager,
        translation_store: TranslationStore | None = None,
        settings: Settings | None = None,
        hook_registry: HookRegistry | None = None,
        validator: IdentifierValidator | None = None,
    ) -> None:
        self.session = session
        self.schema_manager = schema_manager
        self.settings = settings or get_settings()
        self.translation_store = translation_store or TranslationRepository(session)
        self.hook_registry = hook_registry
        self.validator = validator or IdentifierValidator(self.settings.max_identifier_length)
        self.data_types = DataTypeRepository(session)
        self.data_rows = DataRowRepository(session)
        self.permissions = PermissionRepository(session)

    async def prepopulate(self, table_name: str) -> dict[str, Any]:
        """Default CRUD payload for a table, as shown on the "add BREAD" form.

        Raises:
            SchemaNotFound: If the table does not exist.
        """
        table = await self.schema_manager.describe_table(self.validator.validate(table_name))
        singular = NameInflector.singular(table.name)
        return {
            "name": table.name,
            "slug": NameInflector.slug(table.name),
            "display_name_singular": NameInflector.title(singular),
            "display_name_plural": NameInflector.title(NameInflector.plural(table.name)),
            "icon": None,
            "model_name": f"{self.settings.models_namespace}.{NameInflector.studly(singular)}",
            "policy_name": None,
            "controller": None,
            "description": None,
            "translatable": False,
            "generate_permissions": True,
            "server_side": False,
            "details": {
                "order_column": None,
                "order_direction": "asc",
                "order_display_column": None,
                "default_search_key": None,
            },
            "fields": [
                default_row_for(column, table, position)
                for position, column in enumerate(table.columns, start=1)
            ],
        }

    async def create(
        self, payload: dict[str, Any], context: HookContext | None = None
    ) -> DataTypeModel:
        """Create CRUD metadata for an existing table.

        Unknown payload keys are ignored. Field rows are created for every
        column of the table, with overrides from ``payload["fields"]``.

        Raises:
            InvalidIdentifier: If the table name is invalid.
            SchemaNotFound: If the table does not exist.
            CrudAlreadyExists: If the table already has CRUD metadata.
        """
        name = self.validator.validate(payload.get("name"))
        if not await self.schema_manager.table_exists(name):
            raise SchemaNotFound(name)
        if await self.data_types.name_exists(name):
            raise CrudAlreadyExists(name)

        defaults = await self.prepopulate(name)
        values = {**{key: defaults[key] for key in DATA_TYPE_KEYS}, **self._data_type_values(payload)}
        details = {**defaults["details"], **self._details(payload)}

        overrides = self._field_overrides(payload)
        try:
            data_type = await self.data_types.create(
                DataTypeModel(name=name, details=details, **values)
            )
            for row in defaults["fields"]:
                row = {**row, **overrides.get(row["field"], {})}
                await self.data_rows.create(DataRowModel(data_type_id=data_type.id, **row))

            if data_type.generate_permissions:
                await self.permissions.generate_for(name)

            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "CRUD metadata created",
            data_type_id=data_type.id,
            table_name=name,
            field_count=len(defaults["fields"]),
        )

        await self._save_translations(data_type, payload)
        await self._trigger(HookEvent.ON_CRUD_AFTER_CREATE, data_type, context)
        return data_type

    async def update(
        self, data_type_id: int, payload: dict[str, Any], context: HookContext | None = None
    ) -> DataTypeModel:
        """Update CRUD metadata and its field rows.

        Columns added to the table since the last save get default rows.

        Raises:
            NotFound: If the data type does not exist.
        """
        data_type = await self.get(data_type_id)

        try:
            for key, value in self._data_type_values(payload).items():
                setattr(data_type, key, value)
            if self._details(payload):
                data_type.details = {**(data_type.details or {}), **self._details(payload)}

            for field, override in self._field_overrides(payload).items():
                row = await self.data_rows.get_field(data_type.id, field)
                if row is None:
                    logger.debug("Skipping override for unknown field", field=field)
                    continue
                for key, value in override.items():
                    setattr(row, key, value)

            await self._add_missing_rows(data_type)

            if data_type.generate_permissions:
                await self.permissions.generate_for(data_type.name)

            await self.data_types.update(data_type)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("CRUD metadata updated", data_type_id=data_type.id, table_name=data_type.name)

        await self._save_translations(data_type, payload)
        await self._trigger(HookEvent.ON_CRUD_AFTER_UPDATE, data_type, context)
        return data_type

    async def delete(self, data_type_id: int, context: HookContext | None = None) -> dict[str, Any]:
        """Delete CRUD metadata with its translations, rows and permissions.

        All removals share one transaction. If any step fails the
        transaction is rolled back.

        Raises:
            NotFound: If the data type does not exist.
            PartialDeleteFailure: If a removal step fails.
        """
        data_type = await self.get(data_type_id)
        name = data_type.name
        rows = await self.data_rows.list_for_data_type(data_type.id)
        row_ids = [row.id for row in rows]

        async def remove_translations() -> int:
            removed = await self.translation_store.delete_translations("data_types", [data_type.id])
            removed += await self.translation_store.delete_translations("data_rows", row_ids)
            return removed

        actions = {
            "translations": remove_translations,
            "field_rows": lambda: self.data_rows.delete_for_data_type(data_type.id),
            "data_type": lambda: self.data_types.delete_by_id(data_type.id),
            "permissions": lambda: self.permissions.remove_for(name),
        }

        completed: list[str] = []
        removed: dict[str, int] = {}
        for step in DELETE_STEPS:
            try:
                removed[step] = await actions[step]()
            except Exception as e:
                await self.session.rollback()
                logger.error(
                    "CRUD metadata delete failed",
                    table_name=name,
                    completed_steps=completed,
                    failed_step=step,
                    error=str(e),
                )
                raise PartialDeleteFailure(
                    name, completed, step, rolled_back=True, cause=str(e)
                ) from e
            completed.append(step)

        await self.session.commit()
        logger.info("CRUD metadata deleted", data_type_id=data_type_id, table_name=name, **removed)

        result = {"id": data_type_id, "name": name, "removed": removed}
        if self.hook_registry is not None:
            await self.hook_registry.trigger(
                HookEvent.ON_CRUD_AFTER_DELETE, result, context, filters={"table": name}
            )
        return result

    async def get(self, data_type_id: int) -> DataTypeModel:
        data_type = await self.data_types.get_by_id(data_type_id)
        if data_type is None:
            raise NotFound("DataType", data_type_id)
        return data_type

    async def get_by_name(self, name: str) -> DataTypeModel:
        data_type = await self.data_types.get_by_name(name)
        if data_type is None:
            raise NotFound("DataType", name)
        return data_type

    async def get_by_slug(self, slug: str) -> DataTypeModel:
        data_type = await self.data_types.get_by_slug(slug)
        if data_type is None:
            raise NotFound("DataType", slug)
        return data_type

    async def list_all(self) -> list[DataTypeModel]:
        return await self.data_types.list_all()

    async def list_rows(self, data_type_id: int) -> list[DataRowModel]:
        await self.get(data_type_id)
        return await self.data_rows.list_for_data_type(data_type_id)

    async def list_relationships(self, data_type_id: int) -> list[DataRowModel]:
        """Relationship field rows of a data type, in display order."""
        await self.get(data_type_id)
        return await self.data_rows.list_by_type(data_type_id, "relationship")

    async def get_translations(self, data_type_id: int) -> dict[str, dict[str, str]]:
        await self.get(data_type_id)
        return await self.translation_store.get_translations("data_types", data_type_id)

    async def _add_missing_rows(self, data_type: DataTypeModel) -> None:
        if not await self.schema_manager.table_exists(data_type.name):
            logger.warning(
                "CRUD metadata has no table", data_type_id=data_type.id, table_name=data_type.name
            )
            return
        table = await self.schema_manager.describe_table(data_type.name)
        order = await self.data_rows.max_order(data_type.id)
        for column in table.columns:
            if await self.data_rows.get_field(data_type.id, column.name) is None:
                order += 1
                row = default_row_for(column, table, order)
                await self.data_rows.create(DataRowModel(data_type_id=data_type.id, **row))
                logger.debug("Field row added", table_name=data_type.name, field=column.name)

    async def _save_translations(self, data_type: DataTypeModel, payload: dict[str, Any]) -> None:
        """Store translated labels once the core write has committed."""
        translations = payload.get("translations") or {}
        values = {
            column: by_locale
            for column, by_locale in translations.items()
            if column in TRANSLATABLE_COLUMNS and by_locale
        }
        if not data_type.translatable or not values:
            return

        await self.translation_store.save_translations("data_types", data_type.id, values)
        await self.session.commit()
        logger.debug(
            "Translations saved",
            data_type_id=data_type.id,
            columns=sorted(values),
        )

    async def _trigger(
        self, event: str, data_type: DataTypeModel, context: HookContext | None
    ) -> None:
        if self.hook_registry is None:
            return
        await self.hook_registry.trigger(
            event,
            {"id": data_type.id, "name": data_type.name, "slug": data_type.slug},
            context,
            filters={"table": data_type.name},
        )

    @staticmethod
    def _data_type_values(payload: dict[str, Any]) -> dict[str, Any]:
        """Known data type keys of a payload, minus nulls for NOT NULL columns."""
        return {
            key: payload[key]
            for key in DATA_TYPE_KEYS
            if key in payload and not (payload[key] is None and key in REQUIRED_DATA_TYPE_KEYS)
        }

    @staticmethod
    def _details(payload: dict[str, Any]) -> dict[str, Any]:
        details = payload.get("details") or {}
        return {key: details[key] for key in DETAIL_KEYS if key in details}

    @staticmethod
    def _field_overrides(payload: dict[str, Any]) -> dict[str, dict[str, Any]]:
        """Per-field overrides keyed by field name, known row keys only."""
        overrides: dict[str, dict[str, Any]] = {}
        for field in payload.get("fields") or []:
            name = field.get("field")
            if name:
                overrides[name] = {
                    key: field[key]
                    for key in ROW_KEYS
                    if key in field and (field[key] is not None or key == "details")
                }
        return overrides
