"""Config plugin: exposes the runtime config through actions."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from skelcrew.core import aio
from skelcrew.core.types import ActionDefinition

if TYPE_CHECKING:
    from skelcrew.core.context import RuntimeContext

CONFIG_GET = "config:get"
CONFIG_SET = "config:set"
CONFIG_VALIDATE = "config:validate"


class ConfigPlugin:
    name = "config"
    version = "1.0.0"
    description = "Read, update and validate the runtime config via actions"

    def __init__(self) -> None:
        self._unregister: list[Callable[[], None]] = []

    def setup(self, context: RuntimeContext) -> None:
        for action_id, handler in (
            (CONFIG_GET, self._get),
            (CONFIG_SET, self._set),
            (CONFIG_VALIDATE, self._validate),
        ):
            self._unregister.append(
                context.actions.register_action(
                    ActionDefinition(id=action_id, handler=handler)
                )
            )

    def dispose(self, context: RuntimeContext) -> None:
        for unregister in self._unregister:
            unregister()
        self._unregister.clear()

    async def _get(self, key: str | None, context: RuntimeContext) -> Any:
        if key:
            return context.config.get(key)
        return dict(context.config)

    async def _set(
        self, payload: Mapping[str, Any], context: RuntimeContext
    ) -> dict[str, Any]:
        if not isinstance(payload, Mapping):
            raise TypeError("config:set expects a mapping of keys to values")
        context.get_runtime().update_config(payload)
        return dict(context.config)

    async def _validate(self, _params: Any, context: RuntimeContext) -> Any:
        validator = context.host.get("config_validator")
        if not callable(validator):
            return True
        return await aio.resolve(validator(context.config))
