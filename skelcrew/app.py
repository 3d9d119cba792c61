"""Bootstrap: logging, config loading and runtime wiring."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
import yaml

from skelcrew.core.config import RuntimeSettings
from skelcrew.core.runtime import Runtime
from skelcrew.exceptions import ConfigError
from skelcrew.plugins.builtin.config_plugin import ConfigPlugin

if TYPE_CHECKING:
    from collections.abc import Mapping

    from skelcrew.core.types import PluginDefinition

logger = structlog.get_logger()


LOG_FILE_NAME = "skelcrew.log"

# Applied to stdlib records too, so plugin code using ``logging`` renders alike
_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _formatter(renderer: structlog.types.Processor) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def _file_handler(settings: RuntimeSettings, log_dir: Path) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILE_NAME,
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    return handler


def configure_logging(settings: RuntimeSettings) -> None:
    """Route structlog through stdlib logging.

    Console output uses structlog's dev renderer. When ``log_dir`` is set,
    a size-rotated JSON-lines file is written there as well.
    """
    console = logging.StreamHandler()
    console.setFormatter(_formatter(structlog.dev.ConsoleRenderer()))
    handlers: list[logging.Handler] = [console]
    if settings.log_dir is not None:
        handlers.append(_file_handler(settings, settings.log_dir.expanduser()))

    root = logging.getLogger()
    root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(settings.log_level)

    structlog.configure(
        processors=[
            *_PRE_CHAIN,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML mapping to use as the runtime config."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file {path} must contain a mapping, got {type(data).__name__}"
        )
    return data


def build_runtime(
    settings: RuntimeSettings | None = None,
    plugins: list[PluginDefinition] | None = None,
    *,
    config: Mapping[str, Any] | None = None,
    host: Mapping[str, Any] | None = None,
    setup_logging: bool = True,
) -> Runtime:
    if settings is None:
        settings = RuntimeSettings()

    if setup_logging:
        configure_logging(settings)

    runtime_config: dict[str, Any] = {}
    if settings.config_file is not None:
        runtime_config.update(load_config_file(settings.config_file))
    if config:
        runtime_config.update(config)

    runtime = Runtime(
        logger=structlog.get_logger("skelcrew"),
        config=runtime_config,
        host=host,
        enable_performance_monitoring=settings.enable_performance_monitoring,
        plugin_paths=settings.plugin_paths,
        plugin_packages=settings.plugin_packages,
        order_by_dependencies=settings.order_by_dependencies,
    )

    if settings.load_builtin_plugins:
        runtime.register_plugin(ConfigPlugin())
    for plugin in plugins or []:
        runtime.register_plugin(plugin)

    logger.info(
        "runtime_built",
        config_keys=sorted(runtime_config),
        plugin_paths=[str(p) for p in settings.plugin_paths],
        plugin_packages=settings.plugin_packages,
        builtin_plugins=settings.load_builtin_plugins,
        log_level=settings.log_level,
    )
    return runtime
