"""Test helpers: an in-memory logger and a quiet runtime factory."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from skelcrew.core.runtime import Runtime


class LogEntry(BaseModel):
    level: str
    event: str
    args: tuple[Any, ...] = ()
    fields: dict[str, Any] = Field(default_factory=dict)


class MemoryLogger:
    """Records every call instead of writing anywhere."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def _record(self, level: str, event: str, args: tuple[Any, ...], kw: dict) -> None:
        self.entries.append(LogEntry(level=level, event=event, args=args, fields=kw))

    def debug(self, event: str, *args: Any, **kw: Any) -> None:
        self._record("debug", event, args, kw)

    def info(self, event: str, *args: Any, **kw: Any) -> None:
        self._record("info", event, args, kw)

    def warning(self, event: str, *args: Any, **kw: Any) -> None:
        self._record("warning", event, args, kw)

    def error(self, event: str, *args: Any, **kw: Any) -> None:
        self._record("error", event, args, kw)

    def events(self, level: str | None = None) -> list[str]:
        return [e.event for e in self.entries if level is None or e.level == level]

    def find(self, event: str) -> list[LogEntry]:
        return [e for e in self.entries if e.event == event]

    def clear(self) -> None:
        self.entries.clear()


def create_test_runtime(
    *,
    config: Mapping[str, Any] | None = None,
    host: Mapping[str, Any] | None = None,
    logger: MemoryLogger | None = None,
    **kwargs: Any,
) -> Runtime:
    return Runtime(
        logger=logger or MemoryLogger(),
        config=config,
        host=host or {},
        **kwargs,
    )
