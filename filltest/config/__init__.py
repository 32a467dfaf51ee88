"""Configuration package for filltest."""

from __future__ import annotations

from filltest.config.config import (
    ConfigManager,
    get_config,
    init_config,
    reset_config,
    set_config,
    set_nested,
)

__all__ = [
    "ConfigManager",
    "get_config",
    "init_config",
    "reset_config",
    "set_config",
    "set_nested",
]
