"""Shared exception types for skelcrew."""

from __future__ import annotations

from collections.abc import Sequence


class SkelcrewError(Exception):
    """Base exception for all skelcrew errors."""


class ConfigError(SkelcrewError):
    """Configuration is invalid or missing."""


class ValidationError(SkelcrewError):
    """A registration is missing a required field or carries an invalid one."""

    def __init__(
        self, resource_type: str, field: str, resource_id: str | None = None
    ) -> None:
        self.resource_type = resource_type
        self.field = field
        self.resource_id = resource_id
        target = f' "{resource_id}"' if resource_id else ""
        super().__init__(
            f"Validation failed for {resource_type}{target}: "
            f'missing or invalid field "{field}"'
        )


class DuplicateRegistrationError(SkelcrewError):
    """A name or id is already registered."""

    def __init__(self, resource_type: str, identifier: str) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        super().__init__(
            f'{resource_type} with identifier "{identifier}" is already registered'
        )


class NotFoundError(SkelcrewError):
    """A lookup by name or id found nothing."""

    def __init__(self, resource_type: str, identifier: str, hint: str = "") -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        message = f'{resource_type} with id "{identifier}" not found'
        super().__init__(f"{message}. {hint}" if hint else message)


class ActionNotFoundError(NotFoundError):
    def __init__(self, action_id: str) -> None:
        super().__init__("Action", action_id)
        self.action_id = action_id


class ServiceNotFoundError(NotFoundError):
    def __init__(self, name: str) -> None:
        super().__init__(
            "Service", name, hint="Ensure the providing plugin is initialized."
        )


class ActionTimeoutError(SkelcrewError):
    """Action handler did not settle within its timeout."""

    def __init__(self, action_id: str, timeout_ms: float) -> None:
        self.action_id = action_id
        self.timeout_ms = timeout_ms
        super().__init__(f'Action "{action_id}" timed out after {timeout_ms}ms')


class ActionExecutionError(SkelcrewError):
    """Action handler raised; the underlying error is kept on ``cause``."""

    def __init__(self, action_id: str, cause: BaseException) -> None:
        self.action_id = action_id
        self.cause = cause
        super().__init__(f'Action "{action_id}" execution failed: {cause}')


class RuntimeStateError(SkelcrewError):
    """Operation is not allowed in the runtime's current lifecycle state."""


class ContextNotSetError(RuntimeStateError):
    """Action engine used before a runtime context was bound to it."""


class PluginError(SkelcrewError):
    """Plugin lifecycle error."""


class ConfigValidationError(PluginError):
    """A plugin rejected the runtime configuration."""

    def __init__(self, plugin_name: str, errors: Sequence[str] = ()) -> None:
        self.plugin_name = plugin_name
        self.errors = list(errors) or ["Configuration validation failed"]
        super().__init__(
            f'Configuration validation failed for plugin "{plugin_name}": '
            + "; ".join(self.errors)
        )


class PluginSetupError(PluginError):
    """A plugin's validation or setup failed; raised after rollback."""

    def __init__(self, plugin_name: str, cause: BaseException) -> None:
        self.plugin_name = plugin_name
        self.cause = cause
        super().__init__(f'Plugin "{plugin_name}" setup failed: {cause}')


class PluginDependencyError(PluginError):
    """Declared plugin dependencies cannot be satisfied."""


class PluginLoadError(PluginError):
    """A plugin module could not be imported."""


class UIProviderError(SkelcrewError):
    """No usable UI provider is registered."""
