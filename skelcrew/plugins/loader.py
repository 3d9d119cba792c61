"""Discover plugin definitions from files, directories and importable packages."""

from __future__ import annotations

import hashlib
import importlib
import importlib.util
import sys
from collections.abc import Sequence
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import structlog

from skelcrew.exceptions import PluginLoadError

if TYPE_CHECKING:
    from skelcrew.core.types import Logger, PluginDefinition

_EXPORT_NAMES = ("plugin", "PLUGIN")


@runtime_checkable
class PluginLoader(Protocol):
    def load_plugins(
        self, plugin_paths: Sequence[str | Path], plugin_packages: Sequence[str]
    ) -> list[PluginDefinition]: ...


def is_plugin(obj: Any) -> bool:
    return (
        isinstance(getattr(obj, "name", None), str)
        and isinstance(getattr(obj, "version", None), str)
        and callable(getattr(obj, "setup", None))
    )


def _is_candidate(path: Path) -> bool:
    name = path.name
    if "__pycache__" in path.parts or name.startswith("_"):
        return False
    if name.startswith("test_") or name.endswith("_test.py") or name == "conftest.py":
        return False
    return True


def _exported_plugin(module: ModuleType) -> Any:
    for attr in _EXPORT_NAMES:
        candidate = getattr(module, attr, None)
        if candidate is not None:
            return candidate
    return module


class DirectoryPluginLoader:
    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger or structlog.get_logger()

    def load_plugins(
        self,
        plugin_paths: Sequence[str | Path] = (),
        plugin_packages: Sequence[str] = (),
    ) -> list[PluginDefinition]:
        plugins: list[PluginDefinition] = []

        for path in plugin_paths:
            try:
                plugins.extend(self.load_from_path(Path(path)))
            except PluginLoadError as e:
                self._logger.error(
                    "plugin_path_load_failed", path=str(path), error=str(e)
                )

        for package in plugin_packages:
            try:
                plugin = self.load_from_package(package)
            except PluginLoadError as e:
                self._logger.error(
                    "plugin_package_load_failed", package=package, error=str(e)
                )
                continue
            if plugin is not None:
                plugins.append(plugin)

        self._logger.info("plugins_discovered", count=len(plugins))
        return plugins

    def load_from_path(self, path: Path) -> list[PluginDefinition]:
        resolved = path.expanduser().resolve()
        if resolved.is_file():
            plugin = self.load_plugin_file(resolved)
            return [plugin] if plugin is not None else []
        if not resolved.is_dir():
            raise PluginLoadError(f"Plugin path does not exist: {resolved}")

        plugins: list[PluginDefinition] = []
        for file in sorted(resolved.rglob("*.py")):
            if not _is_candidate(file.relative_to(resolved)):
                continue
            try:
                plugin = self.load_plugin_file(file)
            except PluginLoadError as e:
                self._logger.error(
                    "plugin_file_load_failed", path=str(file), error=str(e)
                )
                continue
            if plugin is not None:
                plugins.append(plugin)
        return plugins

    def load_plugin_file(self, file: Path) -> PluginDefinition | None:
        digest = hashlib.sha1(str(file).encode()).hexdigest()[:12]
        module_name = f"skelcrew_plugin_{file.stem}_{digest}"
        spec = importlib.util.spec_from_file_location(module_name, file)
        if spec is None or spec.loader is None:
            raise PluginLoadError(f'Cannot load plugin file "{file}"')

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise PluginLoadError(f'Cannot load plugin file "{file}": {e}') from e

        plugin = _exported_plugin(module)
        if not is_plugin(plugin):
            self._logger.warning("plugin_file_invalid", path=str(file))
            return None
        self._logger.debug("plugin_loaded", path=str(file), name=plugin.name)
        return plugin

    def load_from_package(self, package: str) -> PluginDefinition | None:
        try:
            module = importlib.import_module(package)
        except Exception as e:
            raise PluginLoadError(f'Cannot load package "{package}": {e}') from e

        plugin = _exported_plugin(module)
        if not is_plugin(plugin):
            self._logger.warning("plugin_package_invalid", package=package)
            return None
        self._logger.debug("plugin_loaded", package=package, name=plugin.name)
        return plugin
