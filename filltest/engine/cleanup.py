"""Removal of generated data files."""

from __future__ import annotations

import os
from pathlib import Path

from filltest.core.slots import parse_file_name
from filltest.utils.logging_config import get_logger

logger = get_logger(__name__)


def list_random_files(directory: Path) -> list[Path]:
    """Return the canonically named data files in ``directory`` by index."""
    found = []
    with os.scandir(directory) as entries:
        for entry in entries:
            index = parse_file_name(entry.name)
            if index is not None and entry.is_file(follow_symlinks=False):
                found.append((index, Path(entry.path)))
    return [path for _, path in sorted(found)]


def remove_random_files(directory: Path) -> int:
    """Delete every data file in ``directory`` and return how many went.

    Files that cannot be removed are logged and left in place.
    """
    try:
        paths = list_random_files(directory)
    except OSError as e:
        logger.warning("Could not list %s: %s", directory, e.strerror or e)
        return 0

    removed = 0
    for path in paths:
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Could not remove %s: %s", path.name, e.strerror or e)
            continue
        removed += 1
    if removed:
        logger.info("Removed %d data files from %s", removed, directory)
    return removed
