"""UI bridge: one optional provider that renders registered screens."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import structlog

from skelcrew.core import aio
from skelcrew.exceptions import (
    DuplicateRegistrationError,
    UIProviderError,
    ValidationError,
)

if TYPE_CHECKING:
    from skelcrew.core.context import RuntimeContext
    from skelcrew.core.types import Logger, ScreenDefinition


@runtime_checkable
class UIProvider(Protocol):
    def mount(self, target: Any, context: RuntimeContext) -> Any:
        """May be sync or async."""
        ...

    def render_screen(self, screen: ScreenDefinition) -> Any:
        """May be sync or async."""
        ...


class UIBridge:
    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger or structlog.get_logger()
        self._provider: UIProvider | None = None

    def set_provider(self, provider: UIProvider) -> None:
        if self._provider is not None:
            raise DuplicateRegistrationError("UIProvider", "default")
        for method in ("mount", "render_screen"):
            if not callable(getattr(provider, method, None)):
                raise ValidationError("UIProvider", method)
        self._provider = provider
        self._logger.debug("ui_provider_registered", provider=type(provider).__name__)

    def get_provider(self) -> UIProvider | None:
        return self._provider

    def _require_provider(self) -> UIProvider:
        if self._provider is None:
            raise UIProviderError("No UI provider registered")
        return self._provider

    async def mount(self, target: Any, context: RuntimeContext) -> None:
        await aio.resolve(self._require_provider().mount(target, context))

    async def render_screen(self, screen: ScreenDefinition) -> Any:
        return await aio.resolve(self._require_provider().render_screen(screen))

    async def shutdown(self) -> None:
        unmount = getattr(self._provider, "unmount", None)
        if callable(unmount):
            try:
                await aio.resolve(unmount())
                self._logger.debug("ui_provider_unmounted")
            except Exception as e:
                self._logger.error("ui_provider_unmount_failed", error=str(e))
        self._provider = None
