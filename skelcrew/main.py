"""CLI entry point for skelcrew."""

import asyncio
import json
import sys
from typing import Any

import structlog

from skelcrew.app import build_runtime
from skelcrew.core.config import RuntimeSettings
from skelcrew.core.context import RuntimeContext
from skelcrew.exceptions import (
    ActionExecutionError,
    ActionTimeoutError,
    NotFoundError,
    SkelcrewError,
)

logger = structlog.get_logger()

HELP_TEXT = """Commands:
  <action-id> [json-params]   run an action
  :actions                    list registered actions
  :plugins                    list initialized plugins
  :screens                    list registered screens
  :help                       show this help
Ctrl+D exits."""


def parse_command(line: str) -> tuple[str, Any]:
    """Split ``<action-id> [json-params]`` into the id and decoded params."""
    action_id, _, raw_params = line.strip().partition(" ")
    raw_params = raw_params.strip()
    if not raw_params:
        return action_id, None
    try:
        return action_id, json.loads(raw_params)
    except json.JSONDecodeError:
        # Bare words are passed through as a string
        return action_id, raw_params


def _format_result(result: Any) -> str:
    try:
        return json.dumps(result, indent=2, default=str)
    except (TypeError, ValueError):
        return repr(result)


async def handle_line(context: RuntimeContext, line: str) -> str:
    command = line.strip()
    if command == ":help":
        return HELP_TEXT
    if command == ":actions":
        return "\n".join(context.introspect.list_actions()) or "(no actions)"
    if command == ":plugins":
        return "\n".join(context.plugins.get_initialized_plugins()) or "(no plugins)"
    if command == ":screens":
        return "\n".join(context.introspect.list_screens()) or "(no screens)"

    action_id, params = parse_command(command)
    try:
        result = await context.actions.run_action(action_id, params)
    except NotFoundError as e:
        return f"Error: {e}"
    except ActionTimeoutError as e:
        return f"Timeout: {e}"
    except ActionExecutionError as e:
        return f"Failed: {e}"
    return _format_result(result)


async def _run_cli(settings: RuntimeSettings) -> None:
    runtime = build_runtime(settings)
    await runtime.initialize()
    context = runtime.get_context()

    logger.info(
        "cli_starting",
        plugins=context.plugins.get_initialized_plugins(),
        actions=len(context.introspect.list_actions()),
    )
    print("skelcrew ready. Type :help for commands (Ctrl+D to exit)\n")

    try:
        while True:
            try:
                line = input("> ")
            except EOFError:
                break

            if not line.strip():
                continue

            print(await handle_line(context, line))
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("cli_shutting_down")
        await runtime.shutdown()
        print("\nShutdown complete.")


async def main() -> None:
    try:
        settings = RuntimeSettings()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        print("Check SKELCREW_* variables or your .env file.", file=sys.stderr)
        sys.exit(1)

    try:
        await _run_cli(settings)
    except SkelcrewError as e:
        print(f"Runtime failed: {e}", file=sys.stderr)
        sys.exit(1)


def run() -> None:
    asyncio.run(main())
