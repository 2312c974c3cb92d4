"""Repository for data type (CRUD metadata) operations."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from breadbase.infrastructure.persistence.models import DataTypeModel


class DataTypeRepository:
    """Repository for data type database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, data_type: DataTypeModel) -> DataTypeModel:
        """Create a new data type.

        Args:
            data_type: The data type model to create.

        Returns:
            The created data type model with its ID populated.
        """
        self.session.add(data_type)
        await self.session.flush()
        await self.session.refresh(data_type)
        return data_type

    async def get_by_id(self, data_type_id: int) -> DataTypeModel | None:
        result = await self.session.execute(
            select(DataTypeModel).where(DataTypeModel.id == data_type_id)
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> DataTypeModel | None:
        """Get the data type presenting a table.

        Args:
            name: The physical table name.

        Returns:
            The data type model if found, None otherwise.
        """
        result = await self.session.execute(
            select(DataTypeModel).where(DataTypeModel.name == name)
        )
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> DataTypeModel | None:
        result = await self.session.execute(
            select(DataTypeModel).where(DataTypeModel.slug == slug)
        )
        return result.scalar_one_or_none()

    async def name_exists(self, name: str) -> bool:
        result = await self.session.execute(
            select(DataTypeModel.id).where(DataTypeModel.name == name).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_all(self) -> list[DataTypeModel]:
        result = await self.session.execute(select(DataTypeModel).order_by(DataTypeModel.name))
        return list(result.scalars().all())

    async def update(self, data_type: DataTypeModel) -> DataTypeModel:
        """Flush pending changes on a data type."""
        await self.session.flush()
        await self.session.refresh(data_type)
        return data_type

    async def delete_by_id(self, data_type_id: int) -> int:
        """Delete a data type.

        Returns:
            Number of rows deleted.
        """
        result = await self.session.execute(
            delete(DataTypeModel).where(DataTypeModel.id == data_type_id)
        )
        return result.rowcount
