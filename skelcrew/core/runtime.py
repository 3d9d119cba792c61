"""Runtime: owns the lifecycle state and wires the subsystems together."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import structlog

from skelcrew.core.actions import ActionEngine
from skelcrew.core.context import RuntimeContext
from skelcrew.core.events import RUNTIME_INITIALIZED, RUNTIME_SHUTDOWN, EventBus
from skelcrew.core.performance import create_performance_monitor
from skelcrew.core.screens import ScreenRegistry
from skelcrew.core.services import ServiceRegistry
from skelcrew.core.ui import UIBridge
from skelcrew.exceptions import NotFoundError, RuntimeStateError
from skelcrew.plugins.loader import DirectoryPluginLoader
from skelcrew.plugins.registry import PluginRegistry

if TYPE_CHECKING:
    from skelcrew.core.performance import PerformanceMonitor
    from skelcrew.core.types import Logger, PluginDefinition
    from skelcrew.core.ui import UIProvider
    from skelcrew.plugins.loader import PluginLoader

HOST_VALUE_WARN_BYTES = 1024 * 1024


class RuntimeState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"
    SHUTTING_DOWN = "shutting_down"
    SHUTDOWN = "shutdown"


class Runtime:
    def __init__(
        self,
        *,
        logger: Logger | None = None,
        config: Mapping[str, Any] | None = None,
        host: Mapping[str, Any] | None = None,
        enable_performance_monitoring: bool = False,
        plugin_paths: Sequence[str | Path] = (),
        plugin_packages: Sequence[str] = (),
        plugin_loader: PluginLoader | None = None,
        order_by_dependencies: bool = False,
    ) -> None:
        self._logger = logger or structlog.get_logger()
        self._state = RuntimeState.UNINITIALIZED
        self._config: Mapping[str, Any] = MappingProxyType(dict(config or {}))
        self._validate_host(host or {})
        self._host: Mapping[str, Any] = MappingProxyType(dict(host or {}))
        self.performance: PerformanceMonitor = create_performance_monitor(
            enable_performance_monitoring
        )
        self._plugin_loader = plugin_loader or DirectoryPluginLoader(self._logger)
        self._plugin_paths = list(plugin_paths)
        self._plugin_packages = list(plugin_packages)
        self._discovery_done = False

        self._plugins = PluginRegistry(
            self._logger, order_by_dependencies=order_by_dependencies
        )
        self._ui = UIBridge(self._logger)
        self._screens: ScreenRegistry | None = None
        self._actions: ActionEngine | None = None
        self._events: EventBus | None = None
        self._services: ServiceRegistry | None = None
        self._context: RuntimeContext | None = None

    def _validate_host(self, host: Mapping[str, Any]) -> None:
        for key, value in host.items():
            if callable(value):
                self._logger.warning(
                    "host_value_is_callable",
                    key=key,
                    hint="Consider wrapping it in an object.",
                )
                continue
            try:
                size = len(json.dumps(value))
            except (TypeError, ValueError):
                self._logger.warning("host_value_not_serializable", key=key)
                continue
            if size > HOST_VALUE_WARN_BYTES:
                self._logger.warning("host_value_large", key=key, size=size)

    @property
    def state(self) -> RuntimeState:
        return self._state

    def is_initialized(self) -> bool:
        return self._state is RuntimeState.INITIALIZED

    def register_plugin(self, plugin: PluginDefinition) -> None:
        if self._state is not RuntimeState.UNINITIALIZED:
            raise RuntimeStateError(
                f"Cannot register plugins while runtime is {self._state.value}. "
                "Use context.plugins.register_plugin() during setup instead."
            )
        self._plugins.register_plugin(plugin)

    def _discover_plugins(self) -> None:
        if self._discovery_done:
            return
        self._discovery_done = True
        if not (self._plugin_paths or self._plugin_packages):
            return
        discovered = self._plugin_loader.load_plugins(
            self._plugin_paths, self._plugin_packages
        )
        for plugin in discovered:
            self._plugins.register_plugin(plugin)

    async def initialize(self) -> None:
        if self._state is not RuntimeState.UNINITIALIZED:
            raise RuntimeStateError(f"Runtime already {self._state.value}")

        self._state = RuntimeState.INITIALIZING
        stop_timer = self.performance.start_timer("runtime:initialize")
        self._logger.info("runtime_initializing")
        try:
            self._discover_plugins()
            self._screens = ScreenRegistry(self._logger)
            self._actions = ActionEngine(self._logger)
            self._events = EventBus(self._logger)
            self._services = ServiceRegistry(self._logger)
            self._context = RuntimeContext(
                runtime=self,
                screens=self._screens,
                actions=self._actions,
                plugins=self._plugins,
                events=self._events,
                services=self._services,
                logger=self._logger,
                host=self._host,
            )
            self._actions.set_context(self._context)
            await self._plugins.execute_setup(self._context)
        except BaseException as e:
            self._discard_subsystems()
            self._state = RuntimeState.UNINITIALIZED
            stop_timer()
            self._logger.error(
                "runtime_initialize_failed", error=str(e) or type(e).__name__
            )
            raise

        self._state = RuntimeState.INITIALIZED
        stop_timer()
        self._logger.info(
            "runtime_initialized",
            plugins=self._plugins.get_initialized_plugins(),
        )
        self._events.emit(RUNTIME_INITIALIZED, {"context": self._context})

    def _discard_subsystems(self) -> None:
        if self._actions is not None:
            self._actions.set_context(None)
        self._screens = None
        self._actions = None
        self._events = None
        self._services = None
        self._context = None

    async def shutdown(self) -> None:
        if self._state is not RuntimeState.INITIALIZED:
            self._logger.debug("runtime_shutdown_skipped", state=self._state.value)
            return
        context, events = self._context, self._events

        self._state = RuntimeState.SHUTTING_DOWN
        stop_timer = self.performance.start_timer("runtime:shutdown")
        self._logger.info("runtime_shutting_down")
        events.emit(RUNTIME_SHUTDOWN, {"context": context})

        await self._plugins.execute_dispose(context)
        await self._ui.shutdown()

        for registry in (self._screens, self._actions, self._events, self._services):
            if registry is not None:
                registry.clear()
        self._plugins.clear()
        self._discard_subsystems()

        self._state = RuntimeState.SHUTDOWN
        stop_timer()
        self._logger.info("runtime_shutdown")

    def get_context(self) -> RuntimeContext:
        if self._state is not RuntimeState.INITIALIZED or self._context is None:
            raise RuntimeStateError(
                f"Runtime not initialized (state: {self._state.value})"
            )
        return self._context

    def get_config(self) -> Mapping[str, Any]:
        return self._config

    def update_config(self, config: Mapping[str, Any]) -> None:
        self._config = MappingProxyType({**self._config, **config})
        self._logger.debug("runtime_config_updated", keys=sorted(config))

    def get_metrics(self) -> dict[str, float]:
        return self.performance.get_metrics()

    # UI bridge

    def set_ui_provider(self, provider: UIProvider) -> None:
        self._ui.set_provider(provider)

    def get_ui_provider(self) -> UIProvider | None:
        return self._ui.get_provider()

    async def mount_ui(self, target: Any) -> None:
        await self._ui.mount(target, self.get_context())

    async def render_screen(self, screen_id: str) -> Any:
        screen = self._screens.get_screen(screen_id) if self._screens else None
        if screen is None:
            raise NotFoundError("Screen", screen_id)
        return await self._ui.render_screen(screen)
