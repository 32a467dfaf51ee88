"""Command line entry point for filltest.

Fills a directory (normally a whole volume) with pseudo-random files, reads
them back and reports every byte that did not survive the round trip.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

import click
from rich.markup import escape

from filltest.cli.console import ConsoleReporter, create_console
from filltest.cli.verbosity import VerbosityManager
from filltest.config.config import init_config, set_nested
from filltest.engine.runner import FillTestRunner
from filltest.models import SEED_MAX
from filltest.utils.events import ALL_EVENTS, EventBus
from filltest.utils.exceptions import ConfigurationError
from filltest.utils.logging_config import set_correlation_id

logger = logging.getLogger(__name__)

EPILOG = """\b
The program fills the current directory with files called random-XXXXXXXX.
Each file is up to 1 GiB (changed with -S) and holds pseudo-random integers.
When less than 1 MiB of space is left (changed with -z, with -d set your
cluster size) writing stops and the files are read back. Every changed value
is reported. Reading and writing speeds are shown.
"""


def build_overrides(
    *,
    verify_only: bool,
    seed: int | None,
    file_size: int | None,
    files: int | None,
    fill_up: bool,
    block_size: int | None,
    unlink_after: bool,
    unlink_immediate: bool,
    multicolor: bool,
    log_file: str | None,
    verbosity: VerbosityManager,
) -> dict[str, Any]:
    """Translate command line options into nested configuration values."""
    overrides: dict[str, Any] = {}
    options: dict[str, Any] = {
        "fill.seed": seed,
        "fill.file_size_mib": file_size,
        "fill.file_limit": files,
        "fill.block_size_in512": block_size,
        "observability.log_file": log_file,
        "observability.log_level": verbosity.log_level_override(),
    }
    flags = {
        "fill.verify_only": verify_only,
        # a block size only matters when topping off
        "fill.top_off": fill_up or block_size is not None,
        "fill.unlink_after": unlink_after,
        "fill.unlink_immediate": unlink_immediate,
        "ui.multicolor": multicolor,
    }
    for path, value in options.items():
        if value is not None:
            set_nested(overrides, path, value)
    for path, value in flags.items():
        if value:
            set_nested(overrides, path, True)
    return overrides


@click.command(
    "filltest",
    epilog=EPILOG,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--verify-only", "-v", is_flag=True, help="Verify existing data files.")
@click.option(
    "--directory",
    "-C",
    type=click.Path(path_type=Path),
    help="Work in this directory instead of the current one.",
)
@click.option("--generate-seed", "-g", is_flag=True, help="Generate a random seed.")
@click.option(
    "--seed",
    "-s",
    type=click.IntRange(0, SEED_MAX),
    help="Use this random seed (default=1434038592).",
)
@click.option(
    "--file-size",
    "-S",
    type=click.IntRange(min=1),
    help="Size of each file in MiB (default=1024).",
)
@click.option(
    "--files",
    "-f",
    type=click.IntRange(min=1),
    help="Only write this number of files. Disables -z.",
)
@click.option(
    "--fill-up",
    "-z",
    is_flag=True,
    help="Fill the remaining space with smaller blocks.",
)
@click.option(
    "--block-size",
    "-d",
    type=click.IntRange(1, 2048),
    help="Smaller block size in units of 512 B (default=8, 4 KiB). Implies -z.",
)
@click.option(
    "--unlink-after",
    "-u",
    is_flag=True,
    help="Remove files after a test without errors (works with -v).",
)
@click.option(
    "--unlink-immediate",
    "-U",
    is_flag=True,
    help="Remove files right away, write and verify through open handles.",
)
@click.option(
    "--multicolor", "-m", is_flag=True, help="Colored, detailed output."
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file path.",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    help="Also write log records to this file.",
)
@click.option(
    "--verbose",
    count=True,
    help="Increase log verbosity (--verbose: info, twice: debug).",
)
def main(
    verify_only: bool,
    directory: Path | None,
    generate_seed: bool,
    seed: int | None,
    file_size: int | None,
    files: int | None,
    fill_up: bool,
    block_size: int | None,
    unlink_after: bool,
    unlink_immediate: bool,
    multicolor: bool,
    config_file: str | None,
    log_file: str | None,
    verbose: int,
) -> None:
    """Fill a disk with pseudo-random files and verify them."""
    if generate_seed and seed is not None:
        msg = "-g/--generate-seed and -s/--seed are mutually exclusive"
        raise click.UsageError(msg)
    if generate_seed:
        seed = int(time.time()) & SEED_MAX

    console = create_console(multicolor)
    verbosity = VerbosityManager.from_count(verbose)
    overrides = build_overrides(
        verify_only=verify_only,
        seed=seed,
        file_size=file_size,
        files=files,
        fill_up=fill_up,
        block_size=block_size,
        unlink_after=unlink_after,
        unlink_immediate=unlink_immediate,
        multicolor=multicolor,
        log_file=log_file,
        verbosity=verbosity,
    )
    try:
        config_manager = init_config(config_file, overrides=overrides)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", soft_wrap=True)
        raise click.Abort from e
    config = config_manager.config

    work_dir = Path.cwd()
    if directory is not None:
        if directory.is_dir():
            work_dir = directory.resolve()
        else:
            # keep going in the current directory, like a failed chdir would
            console.print(
                f"Error using directory {directory}: not a directory",
                markup=False,
                soft_wrap=True,
            )

    set_correlation_id()
    if config.ui.multicolor != multicolor:
        console = create_console(config.ui.multicolor)
    reporter = ConsoleReporter(console=console, multicolor=config.ui.multicolor)
    bus = EventBus()
    bus.register_handler(ALL_EVENTS, reporter)

    logger.debug("Starting run in %s with %s", work_dir, config.fill)
    report = FillTestRunner(config.fill, work_dir, bus).run()
    reporter.print_summary(report, config.fill)


if __name__ == "__main__":
    main()
