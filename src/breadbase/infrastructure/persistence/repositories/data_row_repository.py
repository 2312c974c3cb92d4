"""Repository for data row (CRUD field) operations."""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from breadbase.infrastructure.persistence.models import DataRowModel


class DataRowRepository:
    """Repository for data row database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, row: DataRowModel) -> DataRowModel:
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_by_id(self, row_id: int) -> DataRowModel | None:
        result = await self.session.execute(
            select(DataRowModel).where(DataRowModel.id == row_id)
        )
        return result.scalar_one_or_none()

    async def get_field(self, data_type_id: int, field: str) -> DataRowModel | None:
        result = await self.session.execute(
            select(DataRowModel).where(
                DataRowModel.data_type_id == data_type_id,
                DataRowModel.field == field,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_data_type(self, data_type_id: int) -> list[DataRowModel]:
        """List the rows of a data type in display order."""
        result = await self.session.execute(
            select(DataRowModel)
            .where(DataRowModel.data_type_id == data_type_id)
            .order_by(DataRowModel.order, DataRowModel.id)
        )
        return list(result.scalars().all())

    async def list_by_type(self, data_type_id: int, type: str) -> list[DataRowModel]:
        result = await self.session.execute(
            select(DataRowModel)
            .where(DataRowModel.data_type_id == data_type_id, DataRowModel.type == type)
            .order_by(DataRowModel.order, DataRowModel.id)
        )
        return list(result.scalars().all())

    async def field_names_with_prefix(self, prefix: str) -> set[str]:
        """Field names across all data types that start with a prefix.

        Args:
            prefix: The candidate field name.

        Returns:
            Set of matching field names.
        """
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        result = await self.session.execute(
            select(DataRowModel.field).where(DataRowModel.field.like(f"{escaped}%", escape="\\"))
        )
        return set(result.scalars().all())

    async def max_order(self, data_type_id: int) -> int:
        """Highest order of a data type's rows, or 0 when it has none."""
        result = await self.session.execute(
            select(func.coalesce(func.max(DataRowModel.order), 0)).where(
                DataRowModel.data_type_id == data_type_id
            )
        )
        return int(result.scalar_one())

    async def delete_by_id(self, row_id: int) -> int:
        result = await self.session.execute(delete(DataRowModel).where(DataRowModel.id == row_id))
        return result.rowcount

    async def delete_for_data_type(self, data_type_id: int) -> int:
        """Delete every row of a data type.

        Returns:
            Number of rows deleted.
        """
        result = await self.session.execute(
            delete(DataRowModel).where(DataRowModel.data_type_id == data_type_id)
        )
        return result.rowcount
