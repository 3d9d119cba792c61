"""Service locator: plugins publish and discover shared objects by name."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from skelcrew.exceptions import (
    DuplicateRegistrationError,
    ServiceNotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from skelcrew.core.types import Logger


class ServiceRegistry:
    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger or structlog.get_logger()
        self._services: dict[str, Any] = {}

    def register(self, name: str, service: Any) -> None:
        if not name or not isinstance(name, str):
            raise ValidationError("Service", "name")
        if name in self._services:
            raise DuplicateRegistrationError("Service", name)
        self._services[name] = service
        self._logger.debug("service_registered", name=name)

    def get(self, name: str) -> Any:
        if name not in self._services:
            raise ServiceNotFoundError(name)
        return self._services[name]

    def has(self, name: str) -> bool:
        return name in self._services

    def list(self) -> list[str]:
        return list(self._services)

    def clear(self) -> None:
        self._services.clear()
