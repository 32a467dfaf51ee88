"""Configuration management for filltest.

Loads configuration from an optional TOML file and FILLTEST_* environment
variables, validates it through the pydantic models, and sets up logging.
Command line options are applied on top as nested ``overrides``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import toml
from pydantic import ValidationError as PydanticValidationError

from filltest.models import Config
from filltest.utils.exceptions import ConfigurationError
from filltest.utils.logging_config import setup_logging

CONFIG_FILE_NAME = "filltest.toml"

# Global configuration instance
_config_manager: ConfigManager | None = None


class ConfigManager:
    """Manages configuration loading and validation."""

    ENV_MAPPINGS: dict[str, str] = {
        "FILLTEST_SEED": "fill.seed",
        "FILLTEST_FILE_SIZE_MIB": "fill.file_size_mib",
        "FILLTEST_FILE_LIMIT": "fill.file_limit",
        "FILLTEST_TOP_OFF": "fill.top_off",
        "FILLTEST_BLOCK_SIZE_IN512": "fill.block_size_in512",
        "FILLTEST_UNLINK_AFTER": "fill.unlink_after",
        "FILLTEST_UNLINK_IMMEDIATE": "fill.unlink_immediate",
        "FILLTEST_LOG_LEVEL": "observability.log_level",
        "FILLTEST_LOG_FILE": "observability.log_file",
        "FILLTEST_STRUCTURED_LOGGING": "observability.structured_logging",
        "FILLTEST_MULTICOLOR": "ui.multicolor",
    }

    def __init__(
        self,
        config_file: str | Path | None = None,
        overrides: dict[str, Any] | None = None,
        setup_log: bool = True,
    ):
        """Initialize configuration manager.

        Args:
            config_file: Path to TOML config file. If None, searches for filltest.toml
            overrides: Nested values applied last (command line options)
            setup_log: Whether to configure logging from the loaded config

        """
        self.config_file = self._find_config_file(config_file)
        self.overrides = overrides or {}
        self.config = self._load_config()
        if setup_log:
            self._setup_logging()

    def _find_config_file(
        self,
        config_file: str | Path | None,
    ) -> Path | None:
        """Find configuration file in standard locations."""
        if config_file:
            path = Path(config_file)
            if not path.exists():
                msg = f"Configuration file not found: {path}"
                raise ConfigurationError(msg)
            return path

        search_paths = [
            Path.cwd() / CONFIG_FILE_NAME,
            Path.home() / ".config" / "filltest" / CONFIG_FILE_NAME,
        ]

        for path in search_paths:
            if path.exists():
                return path

        return None

    def _load_config(self) -> Config:
        """Load configuration from file, environment and overrides."""
        config_data: dict[str, Any] = {}

        if self.config_file and self.config_file.exists():
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    config_data.update(toml.load(f))
            except (OSError, toml.TomlDecodeError) as e:
                msg = f"Failed to load config file {self.config_file}: {e}"
                raise ConfigurationError(msg) from e

        config_data = self._merge_config(config_data, self._get_env_config())
        config_data = self._merge_config(config_data, self.overrides)

        try:
            return Config(**config_data)
        except PydanticValidationError as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigurationError(msg) from e

    def _get_env_config(self) -> dict[str, Any]:
        """Get configuration from environment variables."""
        env_config: dict[str, Any] = {}

        def _parse_env_value(raw: str) -> bool | int | str:
            low = raw.lower()
            if low in {"true", "yes", "on"}:
                return True
            if low in {"false", "no", "off"}:
                return False
            try:
                return int(raw)
            except ValueError:
                return raw

        for env_name, cfg_path in self.ENV_MAPPINGS.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            set_nested(env_config, cfg_path, _parse_env_value(raw))

        return env_config

    def _merge_config(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Merge configuration dictionaries recursively."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value

        return result

    def _setup_logging(self) -> None:
        """Set up logging configuration."""
        setup_logging(self.config.observability, show_colors=self.config.ui.multicolor)

    def export(self) -> str:
        """Export the current configuration as TOML."""
        return toml.dumps(self.config.model_dump(mode="json", exclude_none=True))


def set_nested(d: dict[str, Any], path: str, value: Any) -> None:
    """Set ``value`` at a dotted ``path`` such as ``fill.seed``, creating sections."""
    parts = path.split(".")
    cur = d
    for p in parts[:-1]:
        cur = cur.setdefault(p, {})
    cur[parts[-1]] = value


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(setup_log=False)
    return _config_manager.config


def init_config(
    config_file: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ConfigManager:
    """Initialize the global configuration manager."""
    global _config_manager
    _config_manager = ConfigManager(config_file, overrides=overrides)
    logging.getLogger(__name__).debug(
        "Configuration loaded from %s",
        _config_manager.config_file or "defaults",
    )
    return _config_manager


def set_config(new_config: Config) -> None:
    """Replace the global configuration at runtime."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager(setup_log=False)
    _config_manager.config = new_config


def reset_config() -> None:
    """Forget the global configuration manager."""
    global _config_manager
    _config_manager = None
