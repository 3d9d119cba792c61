"""Plugin registry: ordered setup with rollback, reverse-order disposal."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

import structlog

from skelcrew.core import aio
from skelcrew.core.types import ConfigValidationResult
from skelcrew.exceptions import (
    ConfigValidationError,
    DuplicateRegistrationError,
    PluginDependencyError,
    PluginSetupError,
    ValidationError,
)

if TYPE_CHECKING:
    from skelcrew.core.context import RuntimeContext
    from skelcrew.core.types import Logger, PluginDefinition


def _dependencies(plugin: PluginDefinition) -> tuple[str, ...]:
    return tuple(getattr(plugin, "dependencies", None) or ())


def _interpret_validation(plugin_name: str, result: Any) -> None:
    """Raise ConfigValidationError unless *result* means "valid"."""
    if result is True:
        return
    if result is False:
        raise ConfigValidationError(plugin_name)
    if isinstance(result, Mapping):
        result = ConfigValidationResult(
            valid=bool(result.get("valid")), errors=list(result.get("errors") or ())
        )
    if isinstance(result, ConfigValidationResult):
        if result.valid:
            return
        raise ConfigValidationError(plugin_name, result.errors)
    raise ConfigValidationError(
        plugin_name,
        [f"validate_config returned unsupported result {result!r}"],
    )


class PluginRegistry:
    def __init__(
        self, logger: Logger | None = None, *, order_by_dependencies: bool = False
    ) -> None:
        self._logger = logger or structlog.get_logger()
        self._order_by_dependencies = order_by_dependencies
        self._plugins: dict[str, PluginDefinition] = {}
        self._initialized: list[str] = []

    def register_plugin(self, plugin: PluginDefinition) -> None:
        name = getattr(plugin, "name", None)
        if not name or not isinstance(name, str):
            raise ValidationError("Plugin", "name")
        version = getattr(plugin, "version", None)
        if not version or not isinstance(version, str):
            raise ValidationError("Plugin", "version", name)
        if not callable(getattr(plugin, "setup", None)):
            raise ValidationError("Plugin", "setup", name)
        deps = getattr(plugin, "dependencies", None) or ()
        if isinstance(deps, str) or not isinstance(deps, Iterable):
            raise ValidationError("Plugin", "dependencies", name)
        if not all(isinstance(d, str) and d for d in deps):
            raise ValidationError("Plugin", "dependencies", name)
        if name in self._plugins:
            raise DuplicateRegistrationError("Plugin", name)

        self._plugins[name] = plugin
        self._logger.info("plugin_registered", name=name, version=version)

    def get_plugin(self, name: str) -> PluginDefinition | None:
        return self._plugins.get(name)

    def get_all_plugins(self) -> list[PluginDefinition]:
        return list(self._plugins.values())

    def get_initialized_plugins(self) -> list[str]:
        return list(self._initialized)

    def resolve_setup_order(self) -> list[PluginDefinition]:
        """Plugins in the order ``execute_setup`` will run them.

        Registration order, unless the registry orders by dependencies, in
        which case Kahn's algorithm is applied with ties broken by
        registration order.
        """
        plugins = [
            p for name, p in self._plugins.items() if name not in self._initialized
        ]
        if not self._order_by_dependencies:
            return plugins

        position = {p.name: i for i, p in enumerate(plugins)}
        indegree = {p.name: 0 for p in plugins}
        dependents: dict[str, list[str]] = {p.name: [] for p in plugins}
        for plugin in plugins:
            for dep in _dependencies(plugin):
                if dep in self._initialized:
                    continue
                if dep not in position:
                    raise PluginDependencyError(
                        f'Plugin "{plugin.name}" requires missing dependency "{dep}"'
                    )
                indegree[plugin.name] += 1
                dependents[dep].append(plugin.name)

        ready = sorted((n for n, d in indegree.items() if d == 0), key=position.get)
        ordered: list[str] = []
        while ready:
            name = ready.pop(0)
            ordered.append(name)
            for dependent in dependents[name]:
                indegree[dependent] -= 1
                if indegree[dependent] == 0:
                    ready.append(dependent)
            ready.sort(key=position.get)

        if len(ordered) != len(plugins):
            cycle = sorted(
                (n for n, d in indegree.items() if d > 0), key=position.get
            )
            raise PluginDependencyError(
                f"Circular plugin dependency among: {', '.join(cycle)}"
            )
        return [self._plugins[name] for name in ordered]

    def _check_dependencies(self, plugin: PluginDefinition) -> None:
        for dep in _dependencies(plugin):
            if dep not in self._initialized:
                self._logger.warning(
                    "plugin_dependency_unmet",
                    name=plugin.name,
                    dependency=dep,
                    registered=dep in self._plugins,
                )

    async def _validate_config(
        self, plugin: PluginDefinition, context: RuntimeContext
    ) -> None:
        validator = getattr(plugin, "validate_config", None)
        if validator is None:
            return
        try:
            result = await aio.resolve(validator(context.config))
        except Exception as e:
            raise ConfigValidationError(plugin.name, [str(e)]) from e
        _interpret_validation(plugin.name, result)

    async def execute_setup(self, context: RuntimeContext) -> None:
        pending = self.resolve_setup_order()
        registered_before = set(self._plugins)
        seen = {p.name for p in pending} | set(self._initialized)
        index = 0
        while index < len(pending):
            plugin = pending[index]
            index += 1
            try:
                self._check_dependencies(plugin)
                await self._validate_config(plugin, context)
                await aio.resolve(plugin.setup(context))
            except Exception as e:
                self._logger.error(
                    "plugin_setup_failed", name=plugin.name, error=str(e)
                )
                await self._abort_setup(context, registered_before)
                raise PluginSetupError(plugin.name, e) from e
            except BaseException:
                # Cancelled mid-setup: undo the same way, keep the original error
                self._logger.warning("plugin_setup_interrupted", name=plugin.name)
                await self._abort_setup(context, registered_before)
                raise

            self._initialized.append(plugin.name)
            self._logger.info("plugin_initialized", name=plugin.name)

            # Plugins registered through the context during this setup run next
            for name, late in self._plugins.items():
                if name not in seen:
                    seen.add(name)
                    pending.append(late)

    async def _abort_setup(
        self, context: RuntimeContext, registered_before: set[str]
    ) -> None:
        if self._initialized:
            self._logger.warning(
                "plugin_setup_rollback", plugins=list(reversed(self._initialized))
            )
        await self._dispose_ledger(context, event="plugin_rolled_back")

        # Plugins registered by setups in this pass are registered again on retry
        for name in [n for n in self._plugins if n not in registered_before]:
            del self._plugins[name]
            self._logger.debug("plugin_registration_dropped", name=name)

    async def execute_dispose(self, context: RuntimeContext) -> None:
        await self._dispose_ledger(context, event="plugin_disposed")

    async def _dispose_ledger(self, context: RuntimeContext, *, event: str) -> None:
        for name in reversed(self._initialized):
            plugin = self._plugins.get(name)
            dispose = getattr(plugin, "dispose", None)
            if dispose is None:
                continue
            try:
                await aio.resolve(dispose(context))
                self._logger.debug(event, name=name)
            except Exception as e:
                self._logger.error(
                    "plugin_dispose_failed", name=name, error=str(e), exc_info=e
                )
        self._initialized.clear()

    def clear(self) -> None:
        self._plugins.clear()
        self._initialized.clear()
