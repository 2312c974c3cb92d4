"""SQLAlchemy model for the translations table.

Stores per-locale values of translatable CRUD labels, keyed by the
metadata table, column and row they translate.
"""

from sqlalchemy import Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from breadbase.infrastructure.persistence.database import Base


class TranslationModel(Base):
    """SQLAlchemy model for the translations table.

    Attributes:
        table_name: Metadata table holding the translated value ("data_types").
        column_name: Translated column ("display_name_singular").
        foreign_key: Primary key of the translated row.
        locale: Locale code.
        value: Translated text.
    """

    __tablename__ = "translations"
    __table_args__ = (
        UniqueConstraint(
            "table_name",
            "column_name",
            "foreign_key",
            "locale",
            name="uq_translations_target_locale",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    table_name: Mapped[str] = mapped_column(String(255), nullable=False)
    column_name: Mapped[str] = mapped_column(String(255), nullable=False)
    foreign_key: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    locale: Mapped[str] = mapped_column(String(16), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Translation(table_name={self.table_name}, column_name={self.column_name}, "
            f"foreign_key={self.foreign_key}, locale={self.locale})>"
        )
