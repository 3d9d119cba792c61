"""Host settings via pydantic-settings."""

from pathlib import Path
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _split_csv(v: str) -> list[str]:
    return [p.strip() for p in v.split(",") if p.strip()]


class RuntimeSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SKELCREW_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Plugin discovery; lists are comma-separated in the environment
    plugin_paths: Annotated[list[Path], NoDecode] = []
    plugin_packages: Annotated[list[str], NoDecode] = []
    load_builtin_plugins: bool = True
    order_by_dependencies: bool = False

    # Runtime config handed to plugins as context.config
    config_file: Path | None = None

    enable_performance_monitoring: bool = False

    # Logging
    log_level: str = "INFO"
    log_dir: Path | None = None
    log_max_bytes: int = 10_485_760
    log_backup_count: int = 5

    @field_validator("plugin_paths", mode="before")
    @classmethod
    def parse_plugin_paths(cls, v: list[Path] | str | Path) -> list[Path]:
        if isinstance(v, Path):
            return [v]
        if isinstance(v, str):
            return [Path(p) for p in _split_csv(v)]
        return v

    @field_validator("plugin_packages", mode="before")
    @classmethod
    def parse_plugin_packages(cls, v: list[str] | str) -> list[str]:
        if isinstance(v, str):
            return _split_csv(v)
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

    @field_validator("config_file")
    @classmethod
    def config_file_must_exist(cls, v: Path | None) -> Path | None:
        if v is None:
            return None
        resolved = v.expanduser().resolve()
        if not resolved.is_file():
            raise ValueError(f"config file does not exist: {resolved}")
        return resolved
