"""Relationship field synthesis.

A relationship is stored as a data row of type ``relationship`` on the
owning data type. Its field name is derived from the owner, the
relationship type and the related table, and made unique across all
data rows with a numeric suffix.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from breadbase.core.hooks import HookEvent, HookRegistry
from breadbase.core.logging import get_logger
from breadbase.domain.entities.hook_context import HookContext
from breadbase.domain.entities.relationship import RelationshipRequest
from breadbase.domain.exceptions import InvalidTarget, NotFound
from breadbase.domain.services.model_resolver import ImportModelResolver, ModelResolver
from breadbase.domain.services.name_inflector import NameInflector
from breadbase.domain.services.schema_lock import NullSchemaLock, SchemaLock
from breadbase.infrastructure.persistence.models import DataRowModel
from breadbase.infrastructure.persistence.repositories import (
    DataRowRepository,
    DataTypeRepository,
)

logger = get_logger(__name__)


class RelationshipService:
    """Service adding and removing relationship field rows.

    Args:
        session: SQLAlchemy async session for the metadata tables.
        model_resolver: Decides whether a model identifier is known. Models
            of registered data types are always accepted.
        hook_registry: Optional registry notified after each change.
        schema_lock: Serializes relationship changes per owning table.
    """

    def __init__(
        self,
        session: AsyncSession,
        model_resolver: ModelResolver | None = None,
        hook_registry: HookRegistry | None = None,
        schema_lock: SchemaLock | None = None,
    ) -> None:
        self.session = session
        self.schema_lock = schema_lock or NullSchemaLock()
        self.model_resolver = model_resolver or ImportModelResolver()
        self.hook_registry = hook_registry
        self.data_types = DataTypeRepository(session)
        self.data_rows = DataRowRepository(session)

    @staticmethod
    def base_field_name(owner_table: str, relationship_type: str, related_table: str) -> str:
        """``books``, ``belongsTo``, ``authors`` -> ``book_belongsto_author_relationship``."""
        return (
            f"{NameInflector.singular(owner_table)}_{relationship_type}_"
            f"{NameInflector.singular(related_table)}_relationship"
        ).lower()

    async def derive_field_name(
        self, owner_table: str, relationship_type: str, related_table: str
    ) -> str:
        """Derive a field name not used by any existing data row.

        The base name gets ``_1``, ``_2``, ... appended until it is free.
        """
        base = self.base_field_name(owner_table, relationship_type, related_table)
        taken = await self.data_rows.field_names_with_prefix(base)

        candidate = base
        suffix = 0
        while candidate in taken:
            suffix += 1
            candidate = f"{base}_{suffix}"
        return candidate

    async def _model_exists(self, model: str) -> bool:
        if self.model_resolver.resolve(model):
            return True
        data_types = await self.data_types.list_all()
        return any(data_type.model_name == model for data_type in data_types)

    async def add_relationship(
        self, request: RelationshipRequest, context: HookContext | None = None
    ) -> DataRowModel:
        """Add a relationship field to a data type.

        Raises:
            NotFound: If the owning data type does not exist.
            InvalidTarget: If the related model does not resolve.
        """
        owner = await self.data_types.get_by_id(request.data_type_id)
        if owner is None:
            raise NotFound("DataType", request.data_type_id)

        if not await self._model_exists(request.model):
            raise InvalidTarget(request.model)

        async with self.schema_lock.hold(owner.name):
            try:
                field = await self.derive_field_name(
                    owner.name, request.relationship_type, request.table
                )
                order = await self.data_rows.max_order(owner.id) + 1
                row = await self.data_rows.create(
                    DataRowModel(
                        data_type_id=owner.id,
                        field=field,
                        type="relationship",
                        display_name=NameInflector.title(request.table),
                        required=False,
                        browse=True,
                        read=True,
                        edit=True,
                        add=True,
                        delete=True,
                        details=request.details(),
                        order=order,
                    )
                )
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

        logger.info(
            "Relationship added",
            data_type_id=owner.id,
            table_name=owner.name,
            field=field,
            relationship_type=request.relationship_type,
            related_table=request.table,
        )
        if self.hook_registry is not None:
            await self.hook_registry.trigger(
                HookEvent.ON_RELATIONSHIP_AFTER_CREATE,
                {"id": row.id, "field": field, "table": owner.name, "details": row.details},
                context,
                filters={"table": owner.name},
            )
        return row

    async def delete_relationship(self, row_id: int, context: HookContext | None = None) -> None:
        """Delete a relationship field row.

        Raises:
            NotFound: If no relationship row has this id.
        """
        row = await self.data_rows.get_by_id(row_id)
        if row is None or row.type != "relationship":
            raise NotFound("Relationship", row_id)

        field = row.field
        try:
            await self.data_rows.delete_by_id(row_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Relationship deleted", row_id=row_id, field=field)
        if self.hook_registry is not None:
            await self.hook_registry.trigger(
                HookEvent.ON_RELATIONSHIP_AFTER_DELETE,
                {"id": row_id, "field": field},
                context,
            )
