"""Permission repository for database operations."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from breadbase.infrastructure.persistence.models import PermissionModel

# BREAD actions a table permission is generated for
BREAD_ACTIONS = ("browse", "read", "edit", "add", "delete")


def permission_keys_for(table_name: str) -> list[str]:
    """Permission keys for a table, e.g. ``browse_products``."""
    return [f"{action}_{table_name}" for action in BREAD_ACTIONS]


class PermissionRepository:
    """Repository for permission database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, permission: PermissionModel) -> PermissionModel:
        self.session.add(permission)
        await self.session.flush()
        return permission

    async def get_by_key(self, key: str) -> PermissionModel | None:
        result = await self.session.execute(
            select(PermissionModel).where(PermissionModel.key == key)
        )
        return result.scalar_one_or_none()

    async def list_for_table(self, table_name: str) -> list[PermissionModel]:
        result = await self.session.execute(
            select(PermissionModel)
            .where(PermissionModel.table_name == table_name)
            .order_by(PermissionModel.id)
        )
        return list(result.scalars().all())

    async def generate_for(self, table_name: str) -> list[PermissionModel]:
        """Create the BREAD permissions of a table, skipping existing keys.

        Args:
            table_name: The physical table name.

        Returns:
            The table's permissions after generation.
        """
        existing = {p.key for p in await self.list_for_table(table_name)}
        for key in permission_keys_for(table_name):
            if key not in existing:
                self.session.add(PermissionModel(key=key, table_name=table_name))
        await self.session.flush()
        return await self.list_for_table(table_name)

    async def remove_for(self, table_name: str) -> int:
        """Delete every permission of a table.

        Returns:
            Number of permissions deleted.
        """
        result = await self.session.execute(
            delete(PermissionModel).where(PermissionModel.table_name == table_name)
        )
        return result.rowcount
