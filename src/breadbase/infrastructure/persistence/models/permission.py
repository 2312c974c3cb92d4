"""SQLAlchemy model for the permissions table.

Permission keys follow the ``<action>_<table>`` convention
(``browse_products``). Global permissions such as ``browse_database``
have no table.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from breadbase.infrastructure.persistence.database import Base


class PermissionModel(Base):
    __tablename__ = "permissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    table_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        comment="Table the permission applies to (NULL for global permissions)",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Permission(id={self.id}, key={self.key}, table_name={self.table_name})>"
