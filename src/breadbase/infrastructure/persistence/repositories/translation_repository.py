"""Translation repository, the default translation store.

Values are passed as ``{column: {locale: value}}`` mappings.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from breadbase.infrastructure.persistence.models import TranslationModel


class TranslationRepository:
    """Repository for translation database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def save_translations(
        self,
        table_name: str,
        foreign_key: int,
        values: dict[str, dict[str, str]],
    ) -> None:
        """Insert or replace translations for one metadata row.

        Args:
            table_name: Metadata table the row lives in.
            foreign_key: Primary key of the row.
            values: Mapping of column name to ``{locale: value}``.
        """
        for column_name, by_locale in values.items():
            for locale, value in by_locale.items():
                result = await self.session.execute(
                    select(TranslationModel).where(
                        TranslationModel.table_name == table_name,
                        TranslationModel.column_name == column_name,
                        TranslationModel.foreign_key == foreign_key,
                        TranslationModel.locale == locale,
                    )
                )
                translation = result.scalar_one_or_none()
                if translation is None:
                    self.session.add(
                        TranslationModel(
                            table_name=table_name,
                            column_name=column_name,
                            foreign_key=foreign_key,
                            locale=locale,
                            value=value,
                        )
                    )
                else:
                    translation.value = value
        await self.session.flush()

    async def get_translations(
        self, table_name: str, foreign_key: int
    ) -> dict[str, dict[str, str]]:
        result = await self.session.execute(
            select(TranslationModel).where(
                TranslationModel.table_name == table_name,
                TranslationModel.foreign_key == foreign_key,
            )
        )
        values: dict[str, dict[str, str]] = {}
        for translation in result.scalars().all():
            values.setdefault(translation.column_name, {})[translation.locale] = translation.value
        return values

    async def delete_translations(self, table_name: str, foreign_keys: list[int]) -> int:
        """Delete translations of the given rows.

        Returns:
            Number of translations deleted.
        """
        if not foreign_keys:
            return 0
        result = await self.session.execute(
            delete(TranslationModel).where(
                TranslationModel.table_name == table_name,
                TranslationModel.foreign_key.in_(foreign_keys),
            )
        )
        return result.rowcount
