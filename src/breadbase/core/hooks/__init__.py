"""Hook system core module.

Hooks let integrators react to schema and CRUD changes (the equivalent of
"table added" / "crud deleted" events) without touching the services.

Example usage:
    from breadbase.core.hooks import HookEvent, HookRegistry

    registry = HookRegistry()

    async def announce(event, data, context):
        logger.info("Table created", table=data["name"])

    registry.register(HookEvent.ON_TABLE_AFTER_CREATE, announce)
"""

from breadbase.core.hooks.hook_events import (
    EVENT_CATEGORIES,
    HookCategory,
    HookEvent,
    get_all_events,
)
from breadbase.core.hooks.hook_registry import HookRegistry, RegisteredHook

__all__ = [
    "EVENT_CATEGORIES",
    "HookCategory",
    "HookEvent",
    "HookRegistry",
    "RegisteredHook",
    "get_all_events",
]
