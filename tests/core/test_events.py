"""Tests for the event bus."""

from __future__ import annotations

import asyncio

import pytest

from skelcrew.core.events import EventBus
from skelcrew.testing import MemoryLogger


@pytest.fixture
def logger():
    return MemoryLogger()


@pytest.fixture
def bus(logger):
    return EventBus(logger)


class TestSubscribe:
    def test_emit_calls_handlers_in_subscription_order(self, bus):
        seen = []
        bus.on("tick", lambda p: seen.append(("a", p)))
        bus.on("tick", lambda p: seen.append(("b", p)))
        bus.emit("tick", 1)
        assert seen == [("a", 1), ("b", 1)]

    def test_emit_without_handlers_is_noop(self, bus):
        bus.emit("nobody-listens", {"x": 1})

    def test_payload_defaults_to_none(self, bus):
        seen = []
        bus.on("ping", seen.append)
        bus.emit("ping")
        assert seen == [None]

    def test_same_handler_twice_is_called_twice(self, bus):
        seen = []
        bus.on("tick", seen.append)
        bus.on("tick", seen.append)
        bus.emit("tick", "x")
        assert seen == ["x", "x"]

    def test_unsubscribe_stops_delivery(self, bus):
        seen = []
        off = bus.on("tick", seen.append)
        off()
        bus.emit("tick", 1)
        assert seen == []
        assert bus.handler_count("tick") == 0

    def test_unsubscribe_is_idempotent(self, bus):
        seen = []
        off = bus.on("tick", seen.append)
        bus.on("tick", seen.append)
        off()
        off()
        bus.emit("tick", 1)
        assert seen == [1]

    def test_handler_count(self, bus):
        bus.on("a", lambda p: None)
        bus.on("a", lambda p: None)
        bus.on("b", lambda p: None)
        assert bus.handler_count("a") == 2
        assert bus.handler_count() == 3

    def test_clear_removes_everything(self, bus):
        bus.on("a", lambda p: None)
        bus.on("*", lambda p: None)
        bus.clear()
        assert bus.handler_count() == 0


class TestDispatchSnapshot:
    def test_handler_added_during_emit_runs_next_time(self, bus):
        seen = []

        def first(payload):
            seen.append("first")
            bus.on("tick", lambda p: seen.append("late"))

        bus.on("tick", first)
        bus.emit("tick")
        assert seen == ["first"]
        bus.emit("tick")
        assert seen == ["first", "first", "late"]

    def test_handler_removed_during_emit_still_runs_this_pass(self, bus):
        seen = []
        offs = {}

        def first(payload):
            seen.append("first")
            offs["second"]()

        bus.on("tick", first)
        offs["second"] = bus.on("tick", lambda p: seen.append("second"))
        bus.emit("tick")
        assert seen == ["first", "second"]
        bus.emit("tick")
        assert seen == ["first", "second", "first"]


class TestErrorIsolation:
    def test_failing_handler_does_not_stop_others(self, bus, logger):
        seen = []

        def broken(payload):
            raise ValueError("handler broke")

        bus.on("tick", broken)
        bus.on("tick", seen.append)
        bus.emit("tick", 42)

        assert seen == [42]
        [entry] = logger.find("event_handler_error")
        assert entry.level == "error"
        assert entry.fields["event_name"] == "tick"
        assert "handler broke" in entry.fields["error"]
        assert "broken" in entry.fields["handler_name"]

    @pytest.mark.asyncio
    async def test_async_handler_failure_is_logged(self, bus, logger):
        async def broken(payload):
            raise RuntimeError("async broke")

        bus.on("tick", broken)
        bus.emit("tick")
        await asyncio.sleep(0.01)

        [entry] = logger.find("event_handler_error")
        assert entry.fields["error"] == "async broke"

    @pytest.mark.asyncio
    async def test_emit_does_not_wait_for_async_handlers(self, bus):
        seen = []

        async def slow(payload):
            await asyncio.sleep(0.01)
            seen.append(payload)

        bus.on("tick", slow)
        bus.emit("tick", 1)
        assert seen == []
        await asyncio.sleep(0.05)
        assert seen == [1]

    def test_async_handler_without_loop_is_dropped_with_warning(self, bus, logger):
        async def handler(payload):
            pass

        bus.on("tick", handler)
        bus.emit("tick")
        assert logger.find("event_handler_not_scheduled")


class TestEmitAsync:
    @pytest.mark.asyncio
    async def test_awaits_handlers_sequentially(self, bus):
        seen = []

        async def slow(payload):
            await asyncio.sleep(0.01)
            seen.append("slow")

        bus.on("tick", slow)
        bus.on("tick", lambda p: seen.append("sync"))
        await bus.emit_async("tick")
        assert seen == ["slow", "sync"]

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_dispatch_continues(self, bus, logger):
        seen = []

        async def broken(payload):
            raise RuntimeError("nope")

        bus.on("tick", broken)
        bus.on("tick", seen.append)
        await bus.emit_async("tick", "p")
        assert seen == ["p"]
        assert logger.find("event_handler_error")


class TestWildcards:
    def test_star_receives_every_event(self, bus):
        seen = []
        bus.on("*", seen.append)
        bus.emit("a", 1)
        bus.emit("b:c", 2)
        assert seen == [1, 2]

    def test_prefix_pattern(self, bus):
        seen = []
        bus.on("plugin:*", seen.append)
        bus.emit("plugin:ready", "r")
        bus.emit("runtime:initialized", "x")
        assert seen == ["r"]

    def test_wildcards_keep_subscription_order(self, bus):
        seen = []
        bus.on("tick", lambda p: seen.append("exact-1"))
        bus.on("*", lambda p: seen.append("star"))
        bus.on("tick", lambda p: seen.append("exact-2"))
        bus.emit("tick")
        assert seen == ["exact-1", "star", "exact-2"]
        assert bus.handler_count("tick") == 3

    def test_unsubscribe_wildcard(self, bus):
        seen = []
        off = bus.on("*", seen.append)
        off()
        bus.emit("tick", 1)
        assert seen == []
