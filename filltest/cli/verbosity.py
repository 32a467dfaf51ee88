"""Verbosity management for the filltest CLI.

Maps repeated ``--verbose`` flags to logging levels.
"""

from __future__ import annotations

import logging
from enum import IntEnum

from filltest.models import LogLevel


class VerbosityLevel(IntEnum):
    """Verbosity levels for the CLI."""

    NORMAL = 0  # warnings and errors
    VERBOSE = 1  # --verbose: phase and file progress
    DEBUG = 2  # --verbose --verbose: everything


class VerbosityManager:
    """Maps a verbosity count to logging levels."""

    LEVEL_TO_LOGGING: dict[VerbosityLevel, int] = {
        VerbosityLevel.NORMAL: logging.WARNING,
        VerbosityLevel.VERBOSE: logging.INFO,
        VerbosityLevel.DEBUG: logging.DEBUG,
    }

    def __init__(self, verbosity_count: int = 0):
        """Initialize verbosity manager.

        Args:
            verbosity_count: Number of --verbose flags

        """
        self.verbosity_count = max(0, min(int(VerbosityLevel.DEBUG), verbosity_count))
        self.level = VerbosityLevel(self.verbosity_count)
        self.logging_level = self.LEVEL_TO_LOGGING[self.level]

    @classmethod
    def from_count(cls, count: int) -> VerbosityManager:
        return cls(count)

    def should_log(self, log_level: int) -> bool:
        return log_level >= self.logging_level

    def is_verbose(self) -> bool:
        return self.level >= VerbosityLevel.VERBOSE

    def is_debug(self) -> bool:
        return self.level >= VerbosityLevel.DEBUG

    def log_level_override(self) -> LogLevel | None:
        """Configured log level to force, or None to keep the configured one."""
        if self.is_debug():
            return LogLevel.DEBUG
        if self.is_verbose():
            return LogLevel.INFO
        return None
