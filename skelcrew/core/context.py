"""Runtime context: the facade handed to plugins and action handlers.

Each facet exposes only the operations plugins are meant to use; the
subsystems behind them (clear, set_context, ...) stay private to the
runtime.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from skelcrew.core.types import (
    ActionMetadata,
    IntrospectionMetadata,
    PluginMetadata,
    ScreenMetadata,
)

if TYPE_CHECKING:
    from skelcrew.core.actions import ActionEngine
    from skelcrew.core.events import EventBus
    from skelcrew.core.runtime import Runtime
    from skelcrew.core.screens import ScreenRegistry
    from skelcrew.core.services import ServiceRegistry
    from skelcrew.core.types import (
        ActionDefinition,
        EventHandler,
        Logger,
        PluginDefinition,
        ScreenDefinition,
    )
    from skelcrew.plugins.registry import PluginRegistry

RUNTIME_VERSION = "0.1.0"


class ScreensAPI:
    def __init__(self, registry: ScreenRegistry) -> None:
        self._registry = registry

    def register_screen(self, screen: ScreenDefinition) -> Callable[[], None]:
        return self._registry.register_screen(screen)

    def get_screen(self, screen_id: str) -> ScreenDefinition | None:
        return self._registry.get_screen(screen_id)

    def get_all_screens(self) -> list[ScreenDefinition]:
        return self._registry.get_all_screens()


class ActionsAPI:
    def __init__(self, engine: ActionEngine) -> None:
        self._engine = engine

    def register_action(self, action: ActionDefinition) -> Callable[[], None]:
        return self._engine.register_action(action)

    async def run_action(self, action_id: str, params: Any = None) -> Any:
        return await self._engine.run_action(action_id, params)


class PluginsAPI:
    def __init__(self, registry: PluginRegistry) -> None:
        self._registry = registry

    def register_plugin(self, plugin: PluginDefinition) -> None:
        self._registry.register_plugin(plugin)

    def get_plugin(self, name: str) -> PluginDefinition | None:
        return self._registry.get_plugin(name)

    def get_all_plugins(self) -> list[PluginDefinition]:
        return self._registry.get_all_plugins()

    def get_initialized_plugins(self) -> list[str]:
        return self._registry.get_initialized_plugins()


class EventsAPI:
    def __init__(self, bus: EventBus) -> None:
        self._bus = bus

    def emit(self, event_name: str, payload: Any = None) -> None:
        self._bus.emit(event_name, payload)

    async def emit_async(self, event_name: str, payload: Any = None) -> None:
        await self._bus.emit_async(event_name, payload)

    def on(self, event_name: str, handler: EventHandler) -> Callable[[], None]:
        return self._bus.on(event_name, handler)


class IntrospectionAPI:
    """Read-only, frozen snapshots of what is currently registered."""

    def __init__(
        self,
        screens: ScreenRegistry,
        actions: ActionEngine,
        plugins: PluginRegistry,
    ) -> None:
        self._screens = screens
        self._actions = actions
        self._plugins = plugins

    def list_actions(self) -> list[str]:
        return [a.id for a in self._actions.get_all_actions()]

    def get_action_definition(self, action_id: str) -> ActionMetadata | None:
        action = self._actions.get_action(action_id)
        if action is None:
            return None
        return ActionMetadata(
            id=action.id, timeout_ms=getattr(action, "timeout_ms", None)
        )

    def list_plugins(self) -> list[str]:
        return [p.name for p in self._plugins.get_all_plugins()]

    def get_plugin_definition(self, name: str) -> PluginMetadata | None:
        plugin = self._plugins.get_plugin(name)
        if plugin is None:
            return None
        return PluginMetadata(
            name=plugin.name,
            version=plugin.version,
            description=getattr(plugin, "description", "") or "",
            dependencies=tuple(getattr(plugin, "dependencies", None) or ()),
        )

    def list_screens(self) -> list[str]:
        return [s.id for s in self._screens.get_all_screens()]

    def get_screen_definition(self, screen_id: str) -> ScreenMetadata | None:
        screen = self._screens.get_screen(screen_id)
        if screen is None:
            return None
        return ScreenMetadata(
            id=screen.id, title=screen.title, component=screen.component
        )

    def get_metadata(self) -> IntrospectionMetadata:
        return IntrospectionMetadata(
            runtime_version=RUNTIME_VERSION,
            total_actions=len(self._actions.get_all_actions()),
            total_plugins=len(self._plugins.get_all_plugins()),
            total_screens=len(self._screens.get_all_screens()),
        )


class RuntimeContext:
    def __init__(
        self,
        *,
        runtime: Runtime,
        screens: ScreenRegistry,
        actions: ActionEngine,
        plugins: PluginRegistry,
        events: EventBus,
        services: ServiceRegistry,
        logger: Logger,
        host: Mapping[str, Any],
    ) -> None:
        self._runtime = runtime
        self.screens = ScreensAPI(screens)
        self.actions = ActionsAPI(actions)
        self.plugins = PluginsAPI(plugins)
        self.events = EventsAPI(events)
        self.services = services
        self.introspect = IntrospectionAPI(screens, actions, plugins)
        self._logger = logger
        self._host = host

    @property
    def logger(self) -> Logger:
        return self._logger

    @property
    def host(self) -> Mapping[str, Any]:
        return self._host

    @property
    def config(self) -> Mapping[str, Any]:
        # Read through on every access so update_config() is always visible
        return self._runtime.get_config()

    def get_runtime(self) -> Runtime:
        return self._runtime
