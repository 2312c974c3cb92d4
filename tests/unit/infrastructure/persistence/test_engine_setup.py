"""Unit tests for engine construction helpers."""

from pathlib import Path

import pytest

from breadbase.infrastructure.persistence.database import (
    build_engine,
    sqlite_directory,
    supports_transactional_ddl,
)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("sqlite+aiosqlite:///./bb_data/breadbase.db", Path("./bb_data")),
        ("sqlite+aiosqlite:///:memory:", None),
        ("postgresql+asyncpg://user:pw@db/breadbase", None),
    ],
)
def test_sqlite_directory(url, expected):
    assert sqlite_directory(url) == expected


@pytest.mark.asyncio
async def test_sqlite_engines_get_transactional_ddl(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'a.db'}")
    plain = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'b.db'}", transactional_ddl=False)

    assert supports_transactional_ddl(engine) is True
    assert supports_transactional_ddl(plain) is False

    await engine.dispose()
    await plain.dispose()
