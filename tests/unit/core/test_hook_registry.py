"""Unit tests for the hook system.

Tests cover:
- Hook registration and unregistration
- Priority ordering
- Tag-based filtering
- Error handling
"""

import pytest

from breadbase.core.hooks import EVENT_CATEGORIES, HookEvent, HookRegistry, get_all_events
from breadbase.domain.entities.hook_context import HookContext


class TestHookRegistry:
    """Tests for the HookRegistry class."""

    def test_register_returns_unique_ids(self) -> None:
        registry = HookRegistry()

        async def my_hook(event, data, context):
            return None

        hook_ids = [registry.register(HookEvent.ON_TABLE_AFTER_CREATE, my_hook) for _ in range(5)]

        assert len(set(hook_ids)) == 5
        assert all(hook_id.startswith("hook_") for hook_id in hook_ids)

    def test_unregister(self) -> None:
        registry = HookRegistry()
        hook_id = registry.register(HookEvent.ON_TABLE_AFTER_CREATE, lambda e, d, c: None)

        assert registry.unregister(hook_id) is True
        assert registry.unregister(hook_id) is False
        assert registry.get_hooks_for_event(HookEvent.ON_TABLE_AFTER_CREATE) == []

    @pytest.mark.asyncio
    async def test_priority_then_registration_order(self) -> None:
        registry = HookRegistry()
        calls: list[str] = []

        registry.register(HookEvent.ON_CRUD_AFTER_CREATE, lambda e, d, c: calls.append("low"))
        registry.register(
            HookEvent.ON_CRUD_AFTER_CREATE, lambda e, d, c: calls.append("high"), priority=10
        )
        registry.register(HookEvent.ON_CRUD_AFTER_CREATE, lambda e, d, c: calls.append("low2"))

        await registry.trigger(HookEvent.ON_CRUD_AFTER_CREATE, {"name": "products"})

        assert calls == ["high", "low", "low2"]

    @pytest.mark.asyncio
    async def test_table_filters(self) -> None:
        registry = HookRegistry()
        seen: list[str] = []

        async def on_products(event, data, context):
            seen.append(data["name"])

        registry.register(HookEvent.ON_TABLE_AFTER_DELETE, on_products, filters={"table": "products"})

        await registry.trigger(
            HookEvent.ON_TABLE_AFTER_DELETE, {"name": "orders"}, filters={"table": "orders"}
        )
        await registry.trigger(
            HookEvent.ON_TABLE_AFTER_DELETE, {"name": "products"}, filters={"table": "products"}
        )

        assert seen == ["products"]

    @pytest.mark.asyncio
    async def test_failing_hook_is_reported_not_raised(self) -> None:
        registry = HookRegistry()
        calls: list[str] = []

        def broken(event, data, context):
            raise RuntimeError("boom")

        registry.register(HookEvent.ON_TABLE_AFTER_UPDATE, broken, priority=1)
        registry.register(HookEvent.ON_TABLE_AFTER_UPDATE, lambda e, d, c: calls.append("ran"))

        result = await registry.trigger(HookEvent.ON_TABLE_AFTER_UPDATE, {}, HookContext())

        assert result.success is False
        assert "boom" in result.errors[0]
        assert len(result.failed_hooks) == 1
        assert calls == ["ran"]

    def test_clear(self) -> None:
        registry = HookRegistry()
        registry.register(HookEvent.ON_BOOTSTRAP, lambda e, d, c: None)
        registry.register(HookEvent.ON_TERMINATE, lambda e, d, c: None)

        assert registry.clear() == 2


def test_every_event_has_a_category():
    assert set(get_all_events()) == set(EVENT_CATEGORIES)


def test_hook_context_gets_request_id():
    assert HookContext().request_id.startswith("hk_")
    assert HookContext(request_id="cid_1").request_id == "cid_1"
