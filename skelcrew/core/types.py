"""Plugin, action and screen records plus the logger protocol."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


@runtime_checkable
class Logger(Protocol):
    """Anything with structlog-style level methods. Must never raise."""

    def debug(self, event: str, *args: Any, **kw: Any) -> Any: ...

    def info(self, event: str, *args: Any, **kw: Any) -> Any: ...

    def warning(self, event: str, *args: Any, **kw: Any) -> Any: ...

    def error(self, event: str, *args: Any, **kw: Any) -> Any: ...


# Callbacks may be plain functions or coroutine functions; pydantic only
# checks that they are callable.
SetupCallback = Callable[..., Any]
DisposeCallback = Callable[..., Any]
ConfigValidator = Callable[..., Any]
ActionHandler = Callable[..., Any]
EventHandler = Callable[[Any], Any]


class ConfigValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: list[str] = Field(default_factory=list)


class PluginDefinition(BaseModel):
    """A plugin as a plain record of callbacks.

    Fields default to empty so that incomplete definitions reach the
    registry, which reports the offending field as a ``ValidationError``.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = ""
    version: str = ""
    description: str = ""
    dependencies: tuple[str, ...] = ()
    setup: SetupCallback | None = None
    dispose: DisposeCallback | None = None
    validate_config: ConfigValidator | None = None


class ActionDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str = ""
    handler: ActionHandler | None = None
    timeout_ms: int | float | None = None


class ScreenDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str = ""
    component: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


# Introspection snapshots


class ActionMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    timeout_ms: int | float | None = None


class PluginMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    description: str = ""
    dependencies: tuple[str, ...] = ()


class ScreenMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    component: str


class IntrospectionMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    runtime_version: str
    total_actions: int
    total_plugins: int
    total_screens: int
