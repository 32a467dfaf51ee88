"""Command line interface for filltest."""

from __future__ import annotations

from filltest.cli.main import main

__all__ = ["main"]
