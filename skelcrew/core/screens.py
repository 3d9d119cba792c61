"""Screen registry: declarative view descriptors keyed by id."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog

from skelcrew.exceptions import DuplicateRegistrationError, ValidationError

if TYPE_CHECKING:
    from skelcrew.core.types import Logger, ScreenDefinition


class ScreenRegistry:
    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger or structlog.get_logger()
        self._screens: dict[str, ScreenDefinition] = {}

    def register_screen(self, screen: ScreenDefinition) -> Callable[[], None]:
        screen_id = getattr(screen, "id", None)
        if not screen_id or not isinstance(screen_id, str):
            raise ValidationError("Screen", "id")
        for field in ("title", "component"):
            value = getattr(screen, field, None)
            if not value or not isinstance(value, str):
                raise ValidationError("Screen", field, screen_id)
        if screen_id in self._screens:
            raise DuplicateRegistrationError("Screen", screen_id)

        self._screens[screen_id] = screen
        self._logger.debug("screen_registered", screen_id=screen_id)

        def unregister() -> None:
            if self._screens.get(screen_id) is screen:
                del self._screens[screen_id]

        return unregister

    def get_screen(self, screen_id: str) -> ScreenDefinition | None:
        return self._screens.get(screen_id)

    def get_all_screens(self) -> list[ScreenDefinition]:
        return list(self._screens.values())

    def clear(self) -> None:
        self._screens.clear()
