"""Helpers for callbacks that may be plain functions or coroutine functions."""

from __future__ import annotations

import inspect
from typing import Any


async def resolve(value: Any) -> Any:
    """Await *value* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


def discard(value: Any) -> None:
    """Close an awaitable that will never be awaited, to avoid a runtime warning."""
    close = getattr(value, "close", None)
    if callable(close):
        close()
