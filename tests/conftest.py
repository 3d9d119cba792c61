"""Shared fixtures and stub plugins for testing."""

from __future__ import annotations

import os

import pytest

from skelcrew.core.config import RuntimeSettings
from skelcrew.core.types import PluginDefinition
from skelcrew.testing import MemoryLogger, create_test_runtime


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep the project .env and shell SKELCREW_* variables out of tests."""
    monkeypatch.setitem(RuntimeSettings.model_config, "env_file", None)
    for key in list(os.environ):
        if key.startswith("SKELCREW_"):
            monkeypatch.delenv(key, raising=False)


class RecordingPlugin:
    """Plugin object that appends its lifecycle calls to a shared list."""

    def __init__(
        self,
        name: str,
        calls: list[str],
        *,
        dependencies: tuple[str, ...] = (),
        fail_setup: bool = False,
        fail_dispose: bool = False,
        with_dispose: bool = True,
    ) -> None:
        self.name = name
        self.version = "1.0.0"
        self.description = f"{name} test plugin"
        self.dependencies = dependencies
        self._calls = calls
        self._fail_setup = fail_setup
        self._fail_dispose = fail_dispose
        if not with_dispose:
            self.dispose = None

    async def setup(self, context) -> None:
        self._calls.append(f"setup:{self.name}")
        if self._fail_setup:
            raise RuntimeError("boom")

    async def dispose(self, context) -> None:
        self._calls.append(f"dispose:{self.name}")
        if self._fail_dispose:
            raise RuntimeError("dispose boom")


def make_plugin(name: str = "stub", **kwargs) -> PluginDefinition:
    kwargs.setdefault("version", "1.0.0")
    kwargs.setdefault("setup", lambda ctx: None)
    return PluginDefinition(name=name, **kwargs)


@pytest.fixture
def calls() -> list[str]:
    return []


@pytest.fixture
def memory_logger():
    return MemoryLogger()


@pytest.fixture
def runtime(memory_logger):
    return create_test_runtime(logger=memory_logger)
