"""Tests for the built-in config plugin."""

from __future__ import annotations

import pytest

from skelcrew.exceptions import ActionExecutionError, ActionNotFoundError
from skelcrew.plugins.builtin.config_plugin import (
    CONFIG_GET,
    CONFIG_SET,
    CONFIG_VALIDATE,
    ConfigPlugin,
)
from skelcrew.testing import create_test_runtime


async def _started(config=None, host=None):
    runtime = create_test_runtime(config=config, host=host)
    runtime.register_plugin(ConfigPlugin())
    await runtime.initialize()
    return runtime


class TestConfigPlugin:
    @pytest.mark.asyncio
    async def test_registers_actions(self):
        runtime = await _started()
        actions = runtime.get_context().introspect.list_actions()
        assert actions == [CONFIG_GET, CONFIG_SET, CONFIG_VALIDATE]

    @pytest.mark.asyncio
    async def test_get_whole_config_and_single_key(self):
        runtime = await _started(config={"theme": "dark", "lang": "en"})
        ctx = runtime.get_context()
        assert await ctx.actions.run_action(CONFIG_GET) == {
            "theme": "dark",
            "lang": "en",
        }
        assert await ctx.actions.run_action(CONFIG_GET, "theme") == "dark"
        assert await ctx.actions.run_action(CONFIG_GET, "missing") is None

    @pytest.mark.asyncio
    async def test_set_merges_into_runtime_config(self):
        runtime = await _started(config={"theme": "dark"})
        ctx = runtime.get_context()
        result = await ctx.actions.run_action(CONFIG_SET, {"lang": "fr"})
        assert result == {"theme": "dark", "lang": "fr"}
        assert runtime.get_config()["lang"] == "fr"

    @pytest.mark.asyncio
    async def test_set_rejects_non_mapping(self):
        runtime = await _started()
        with pytest.raises(ActionExecutionError, match="expects a mapping"):
            await runtime.get_context().actions.run_action(CONFIG_SET, "nope")

    @pytest.mark.asyncio
    async def test_validate_without_host_validator(self):
        runtime = await _started()
        assert await runtime.get_context().actions.run_action(CONFIG_VALIDATE)

    @pytest.mark.asyncio
    async def test_validate_uses_host_validator(self):
        def require_theme(config):
            return "theme" in config

        runtime = await _started(
            config={"lang": "en"}, host={"config_validator": require_theme}
        )
        ctx = runtime.get_context()
        assert await ctx.actions.run_action(CONFIG_VALIDATE) is False

        runtime.update_config({"theme": "light"})
        assert await ctx.actions.run_action(CONFIG_VALIDATE) is True

    @pytest.mark.asyncio
    async def test_dispose_unregisters_actions(self):
        runtime = await _started()
        ctx = runtime.get_context()
        await runtime.shutdown()
        with pytest.raises(ActionNotFoundError):
            await ctx.actions.run_action(CONFIG_GET)
