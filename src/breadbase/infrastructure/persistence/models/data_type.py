"""SQLAlchemy model for the data_types table.

A data type describes how one physical table is presented as a BREAD
resource. It refers to its table by name only.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from breadbase.infrastructure.persistence.database import Base


class DataTypeModel(Base):
    """SQLAlchemy model for the data_types table.

    Attributes:
        id: Auto-incrementing primary key.
        name: Name of the physical table this resource presents.
        slug: URL slug for the resource.
        display_name_singular: Human-readable singular label.
        display_name_plural: Human-readable plural label.
        icon: Optional icon class for the admin menu.
        model_name: Dotted path of the model class backing the resource.
        policy_name: Optional dotted path of an authorization policy.
        controller: Optional dotted path of a custom controller.
        description: Free-text description.
        translatable: Whether labels are stored in the translation store.
        generate_permissions: Whether BREAD permissions are generated.
        server_side: Whether browse pagination happens server side.
        details: JSON with order_column, order_direction,
            order_display_column and default_search_key.
    """

    __tablename__ = "data_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Physical table name",
    )
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    display_name_singular: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name_plural: Mapped[str] = mapped_column(String(255), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(255), nullable=True)
    model_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    policy_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    controller: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    translatable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    generate_permissions: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    server_side: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<DataType(id={self.id}, name={self.name}, slug={self.slug})>"
