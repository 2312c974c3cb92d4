"""Hook registry.

Callbacks subscribe to the events in ``hook_events`` and run after the
operation that fired them has completed. Each event keeps its hooks
sorted by priority, highest first, then by registration order.
"""

import asyncio
import bisect
import itertools
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from breadbase.core.logging import get_logger
from breadbase.domain.entities.hook_context import HookContext, HookResult

logger = get_logger(__name__)


@dataclass
class RegisteredHook:
    """A subscribed callback.

    Attributes:
        id: Handle returned by ``register``.
        event: Event name.
        callback: Sync or async callable taking (event, data, context).
        filters: Tag values the trigger must carry, e.g. {"table": "posts"}.
        priority: Higher runs earlier.
        sequence: Registration sequence number, breaks priority ties.
    """

    id: str
    event: str
    callback: Callable
    filters: dict[str, Any] = field(default_factory=dict)
    priority: int = 0
    sequence: int = 0

    @property
    def sort_key(self) -> tuple[int, int]:
        return (-self.priority, self.sequence)

    def matches(self, filters: Optional[dict[str, Any]]) -> bool:
        """A hook without filters matches every trigger.

        Triggers without filters reach every hook of the event.
        """
        if not filters:
            return True
        return all(filters.get(key) == value for key, value in self.filters.items())

    async def call(self, event: str, data: Any, context: Optional[HookContext]) -> None:
        if asyncio.iscoroutinefunction(self.callback):
            await self.callback(event, data, context)
        else:
            self.callback(event, data, context)


class HookRegistry:
    """Registration and dispatch of hooks.

    Example:
        registry = HookRegistry()
        registry.register(
            HookEvent.ON_TABLE_AFTER_CREATE,
            notify_admins,
            filters={"table": "products"},
        )
        await registry.trigger(
            HookEvent.ON_TABLE_AFTER_CREATE,
            table.to_dict(),
            filters={"table": "products"},
        )
    """

    def __init__(self) -> None:
        self._by_event: dict[str, list[RegisteredHook]] = {}
        self._by_id: dict[str, RegisteredHook] = {}
        self._sequence = itertools.count(1)

    def register(
        self,
        event: str,
        callback: Callable,
        filters: Optional[dict[str, Any]] = None,
        priority: int = 0,
    ) -> str:
        """Subscribe ``callback`` to ``event`` and return its hook id."""
        hook = RegisteredHook(
            id=f"hook_{uuid.uuid4().hex[:12]}",
            event=event,
            callback=callback,
            filters=dict(filters or {}),
            priority=priority,
            sequence=next(self._sequence),
        )
        hooks = self._by_event.setdefault(event, [])
        bisect.insort(hooks, hook, key=lambda h: h.sort_key)
        self._by_id[hook.id] = hook

        logger.debug(
            "Hook registered",
            hook_id=hook.id,
            hook_event=event,
            priority=priority,
            filters=hook.filters,
        )
        return hook.id

    def unregister(self, hook_id: str) -> bool:
        """Remove a hook. Returns False for an unknown id."""
        hook = self._by_id.pop(hook_id, None)
        if hook is None:
            logger.warning("Hook not found for unregister", hook_id=hook_id)
            return False

        hooks = self._by_event[hook.event]
        hooks.remove(hook)
        if not hooks:
            del self._by_event[hook.event]
        logger.debug("Hook unregistered", hook_id=hook_id, hook_event=hook.event)
        return True

    async def trigger(
        self,
        event: str,
        data: Optional[dict[str, Any]] = None,
        context: Optional[HookContext] = None,
        filters: Optional[dict[str, Any]] = None,
    ) -> HookResult:
        """Run the matching hooks of an event in order.

        Every hook runs even when an earlier one raises; failures are
        logged and collected in the result.
        """
        result = HookResult(data=data)
        hooks = [hook for hook in self._by_event.get(event, ()) if hook.matches(filters)]
        if not hooks:
            return result

        logger.debug(
            "Triggering hooks",
            hook_event=event,
            hook_count=len(hooks),
            filters=filters,
            source=context.source if context else None,
        )
        for hook in hooks:
            try:
                await hook.call(event, data, context)
            except Exception as e:
                logger.error(
                    "Hook execution failed",
                    hook_id=hook.id,
                    hook_event=event,
                    error=str(e),
                )
                result.record_failure(hook.id, e)
        return result

    def get_hooks_for_event(self, event: str) -> list[RegisteredHook]:
        return list(self._by_event.get(event, ()))

    def clear(self) -> int:
        """Remove every hook and return how many there were."""
        count = len(self._by_id)
        self._by_event.clear()
        self._by_id.clear()
        return count
