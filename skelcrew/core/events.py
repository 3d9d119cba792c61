"""Lightweight event bus for cross-plugin signals."""

from __future__ import annotations

import asyncio
import inspect
import itertools
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ConfigDict

from skelcrew.core import aio

if TYPE_CHECKING:
    from skelcrew.core.types import EventHandler, Logger

# Lifecycle event names
RUNTIME_INITIALIZED = "runtime:initialized"
RUNTIME_SHUTDOWN = "runtime:shutdown"

WILDCARD = "*"

Unsubscribe = Callable[[], None]


class Subscription(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    event_name: str
    handler: Callable[[Any], Any]
    seq: int

    def matches(self, event_name: str) -> bool:
        if self.event_name == WILDCARD:
            return True
        if self.event_name.endswith(WILDCARD):
            return event_name.startswith(self.event_name[:-1])
        return self.event_name == event_name


def _handler_name(handler: Any) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class EventBus:
    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger or structlog.get_logger()
        self._handlers: dict[str, list[Subscription]] = {}
        self._wildcards: list[Subscription] = []
        self._seq = itertools.count()
        self._pending: set[asyncio.Future[Any]] = set()

    def on(self, event_name: str, handler: EventHandler) -> Unsubscribe:
        sub = Subscription(event_name=event_name, handler=handler, seq=next(self._seq))
        if WILDCARD in event_name:
            self._wildcards.append(sub)
        else:
            self._handlers.setdefault(event_name, []).append(sub)

        def unsubscribe() -> None:
            self._remove(sub)

        return unsubscribe

    def _remove(self, sub: Subscription) -> None:
        if WILDCARD in sub.event_name:
            if sub in self._wildcards:
                self._wildcards.remove(sub)
            return
        subs = self._handlers.get(sub.event_name)
        if subs and sub in subs:
            subs.remove(sub)
            if not subs:
                del self._handlers[sub.event_name]

    def _listeners(self, event_name: str) -> list[Subscription]:
        # Snapshot: subscribe/unsubscribe during dispatch doesn't affect this pass
        listeners = list(self._handlers.get(event_name, ()))
        matched = [s for s in self._wildcards if s.matches(event_name)]
        if matched:
            listeners = sorted(listeners + matched, key=lambda s: s.seq)
        return listeners

    def emit(self, event_name: str, payload: Any = None) -> None:
        for sub in self._listeners(event_name):
            try:
                result = sub.handler(payload)
            except Exception as e:
                self._log_failure(event_name, sub, e)
                continue
            if inspect.isawaitable(result):
                self._schedule(event_name, sub, result)

    async def emit_async(self, event_name: str, payload: Any = None) -> None:
        for sub in self._listeners(event_name):
            try:
                await aio.resolve(sub.handler(payload))
            except Exception as e:
                self._log_failure(event_name, sub, e)

    def _schedule(self, event_name: str, sub: Subscription, awaitable: Any) -> None:
        """Run an async handler fire-and-forget; emit() itself never awaits."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            aio.discard(awaitable)
            self._logger.warning(
                "event_handler_not_scheduled",
                event_name=event_name,
                handler_name=_handler_name(sub.handler),
                reason="no running event loop",
            )
            return

        future = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(future)

        def _done(fut: asyncio.Future[Any]) -> None:
            self._pending.discard(fut)
            if fut.cancelled():
                return
            exc = fut.exception()
            if exc is not None:
                self._log_failure(event_name, sub, exc)

        future.add_done_callback(_done)

    def _log_failure(
        self, event_name: str, sub: Subscription, error: BaseException
    ) -> None:
        self._logger.error(
            "event_handler_error",
            event_name=event_name,
            handler_name=_handler_name(sub.handler),
            error=str(error),
            exc_info=error,
        )

    def handler_count(self, event_name: str | None = None) -> int:
        if event_name is None:
            return sum(len(s) for s in self._handlers.values()) + len(self._wildcards)
        return len(self._listeners(event_name))

    def clear(self) -> None:
        self._handlers.clear()
        self._wildcards.clear()
