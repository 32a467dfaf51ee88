"""Exception hierarchy for filltest.

Provides the exceptions raised at the configuration boundary and the error
types the engine uses internally to classify I/O conditions.
"""

from __future__ import annotations

from typing import Any


class FillTestError(Exception):
    """Base exception for all filltest errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize filltest error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ValidationError(FillTestError):
    """Data validation errors."""


class ConfigurationError(ValidationError):
    """Configuration validation errors."""


class ResourceError(FillTestError):
    """Resource management errors."""


class RegistryExhaustedError(ResourceError):
    """No retained descriptor left at the requested position."""
