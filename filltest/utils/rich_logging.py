"""Rich logging integration for filltest.

Provides the Rich console handler and the plain formatter used for log files.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


class CorrelationRichHandler(RichHandler):
    """RichHandler with correlation ID support and highlighted file names.

    Canonical data file names (random-XXXXXXXX) are colored cyan and
    ALL_CAPS status words (STATUS, ERROR) are colored orange.
    """

    FILE_NAME_PATTERN = r"random-\d{8}"
    STATUS_PATTERN = r"\b[A-Z][A-Z_]*[A-Z]\b"

    def __init__(
        self,
        *args: Any,
        console: Console | None = None,
        show_colors: bool = True,
        **kwargs: Any,
    ) -> None:
        """Initialize RichHandler with correlation ID support.

        Args:
            *args: Positional arguments for RichHandler
            console: Optional Rich Console instance
            show_colors: Whether to colorize file names and status words
            **kwargs: Keyword arguments for RichHandler

        """
        if console is None:
            console = Console(file=sys.stderr, markup=True)

        self.show_colors = show_colors

        if "markup" not in kwargs:
            kwargs["markup"] = True

        super().__init__(*args, console=console, **kwargs)

    def _colorize(self, message: str) -> str:
        """Colorize file names and ALL_CAPS status words in the message."""
        if not self.show_colors:
            return message
        message = re.sub(
            self.FILE_NAME_PATTERN,
            lambda m: f"[cyan]{m.group(0)}[/cyan]",
            message,
        )
        return re.sub(
            self.STATUS_PATTERN,
            lambda m: f"[orange1]{m.group(0)}[/orange1]",
            message,
        )

    def emit(self, record: logging.LogRecord) -> None:
        """Emit a log record with correlation ID and colorized message."""
        try:
            if not hasattr(record, "correlation_id"):
                from filltest.utils.logging_config import correlation_id

                record.correlation_id = correlation_id.get() or "no-correlation-id"

            record.msg = self._colorize(record.getMessage())
            record.args = ()

            super().emit(record)
        except Exception:
            self.handleError(record)

    def handleError(self, record: logging.LogRecord) -> None:
        """Handle errors during logging to prevent circular errors."""
        try:
            sys.stderr.write(
                f"Logging error (suppressed): "
                f"{record.levelname} {record.name}: {record.getMessage()}\n"
            )
            sys.stderr.flush()
        except Exception:  # nosec B110 - last resort, nothing left to report to
            pass


def strip_rich_markup(text: str) -> str:
    """Strip Rich markup from text for file logging.

    Args:
        text: Text with Rich markup

    Returns:
        Text without Rich markup

    """
    pattern = r"\[/?[a-z0-9_#]+\]"
    return re.sub(pattern, "", text)


class FileFormatter(logging.Formatter):
    """Formatter for file output that strips Rich markup."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record, stripping Rich markup for file output."""
        return strip_rich_markup(super().format(record))


def create_rich_handler(
    console: Console | None = None,
    level: int | str = logging.INFO,
    show_path: bool = False,
    rich_tracebacks: bool = True,
    show_colors: bool = True,
) -> logging.Handler:
    """Create a RichHandler with correlation ID support.

    Args:
        console: Optional Rich Console instance
        level: Log level
        show_path: Whether to show file paths in log output
        rich_tracebacks: Whether to use rich tracebacks
        show_colors: Whether to colorize file names and status words

    Returns:
        Configured RichHandler instance

    """
    if console is None:
        console = Console(
            file=sys.stderr,
            force_interactive=False,
            markup=True,
            no_color=not show_colors,
        )

    return CorrelationRichHandler(
        console=console,
        level=level,
        show_path=show_path,
        rich_tracebacks=rich_tracebacks,
        show_colors=show_colors,
    )
