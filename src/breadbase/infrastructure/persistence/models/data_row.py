"""SQLAlchemy model for the data_rows table.

One row per field shown on a BREAD resource, including synthetic
relationship fields that have no physical column.
"""

from typing import Any

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from breadbase.infrastructure.persistence.database import Base


class DataRowModel(Base):
    """SQLAlchemy model for the data_rows table.

    Attributes:
        id: Auto-incrementing primary key.
        data_type_id: Owning data type.
        field: Field name (column name, or a derived relationship name).
        type: Semantic field type ("text", "number", "relationship", ...).
        display_name: Label shown in forms and listings.
        required: Whether the field must be filled in.
        browse/read/edit/add/delete: Per-action visibility flags.
        details: Free-form JSON options for the field.
        order: Position of the field within its data type.
    """

    __tablename__ = "data_rows"
    __table_args__ = (
        UniqueConstraint("data_type_id", "field", name="uq_data_rows_data_type_field"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    data_type_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("data_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    field: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    browse: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    edit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    add: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    delete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<DataRow(id={self.id}, data_type_id={self.data_type_id}, field={self.field})>"
