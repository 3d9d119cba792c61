"""Action engine: named operations with timeout and error wrapping."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from skelcrew.core import aio
from skelcrew.exceptions import (
    ActionExecutionError,
    ActionNotFoundError,
    ActionTimeoutError,
    ContextNotSetError,
    DuplicateRegistrationError,
    ValidationError,
)

if TYPE_CHECKING:
    from skelcrew.core.context import RuntimeContext
    from skelcrew.core.types import ActionDefinition, Logger

Unregister = Callable[[], None]


def _valid_timeout(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return value > 0


class ActionEngine:
    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger or structlog.get_logger()
        self._actions: dict[str, ActionDefinition] = {}
        self._context: RuntimeContext | None = None
        self._abandoned: set[asyncio.Task[Any]] = set()

    def set_context(self, context: RuntimeContext | None) -> None:
        self._context = context

    def register_action(self, action: ActionDefinition) -> Unregister:
        action_id = getattr(action, "id", None)
        if not action_id or not isinstance(action_id, str):
            raise ValidationError("Action", "id")
        if not callable(getattr(action, "handler", None)):
            raise ValidationError("Action", "handler", action_id)
        if not _valid_timeout(getattr(action, "timeout_ms", None)):
            raise ValidationError("Action", "timeout_ms", action_id)
        if action_id in self._actions:
            raise DuplicateRegistrationError("Action", action_id)

        self._actions[action_id] = action
        self._logger.debug("action_registered", action_id=action_id)

        def unregister() -> None:
            if self._actions.get(action_id) is action:
                del self._actions[action_id]
                self._logger.debug("action_unregistered", action_id=action_id)

        return unregister

    async def run_action(self, action_id: str, params: Any = None) -> Any:
        action = self._actions.get(action_id)
        if action is None:
            raise ActionNotFoundError(action_id)
        if self._context is None:
            raise ContextNotSetError(
                f'Cannot run action "{action_id}": runtime context not set'
            )

        timeout_ms = getattr(action, "timeout_ms", None)
        try:
            if timeout_ms:
                return await self._run_with_timeout(action, params, timeout_ms)
            return await self._invoke(action, params)
        except ActionTimeoutError:
            self._logger.error(
                "action_timed_out", action_id=action_id, timeout_ms=timeout_ms
            )
            raise
        except ActionExecutionError as e:
            self._logger.error(
                "action_failed",
                action_id=action_id,
                error=str(e.cause),
                exc_info=e.cause,
            )
            raise

    async def _invoke(self, action: ActionDefinition, params: Any) -> Any:
        try:
            return await aio.resolve(action.handler(params, self._context))
        except Exception as e:
            raise ActionExecutionError(action.id, e) from e

    async def _run_with_timeout(
        self, action: ActionDefinition, params: Any, timeout_ms: float
    ) -> Any:
        task = asyncio.ensure_future(self._invoke(action, params))
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task in done:
            return task.result()

        # No preemption: the handler keeps running, its outcome goes nowhere.
        self._abandoned.add(task)
        task.add_done_callback(self._settle_abandoned)
        raise ActionTimeoutError(action.id, timeout_ms)

    def _settle_abandoned(self, task: asyncio.Task[Any]) -> None:
        self._abandoned.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        self._logger.debug(
            "abandoned_action_settled",
            failed=exc is not None,
            error=str(exc) if exc else None,
        )

    def get_action(self, action_id: str) -> ActionDefinition | None:
        return self._actions.get(action_id)

    def get_all_actions(self) -> list[ActionDefinition]:
        return list(self._actions.values())

    def clear(self) -> None:
        self._actions.clear()
