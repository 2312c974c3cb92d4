"""Advisory locks keyed by table name, held around schema mutations."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Protocol


class SchemaLock(Protocol):
    def hold(self, name: str) -> AsyncContextManager[None]:
        ...


class NullSchemaLock:
    """No coordination between concurrent mutations."""

    @asynccontextmanager
    async def hold(self, name: str) -> AsyncIterator[None]:
        yield


class LocalSchemaLock:
    """One asyncio.Lock per table name, within a single process.

    Example:
        lock = LocalSchemaLock()
        async with lock.hold("products"):
            await updater.update(definition)
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, name: str) -> asyncio.Lock:
        key = name.lower()
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        return self._locks[key]

    def is_held(self, name: str) -> bool:
        lock = self._locks.get(name.lower())
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, name: str) -> AsyncIterator[None]:
        async with self._lock_for(name):
            yield


def build_schema_lock(kind: str) -> SchemaLock:
    """Build the lock named by the ``schema_lock`` setting."""
    if kind == "local":
        return LocalSchemaLock()
    if kind == "none":
        return NullSchemaLock()
    raise ValueError(f"Unknown schema lock '{kind}'")
