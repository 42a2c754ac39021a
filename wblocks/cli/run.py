"""wblocks run command - Load scripts and keep their timers running."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from wblocks.cli.error_handler import ConfigurationError, handle_errors
from wblocks.cli.output import format_duration, print_script_progress
from wblocks.config import ConfigLoadError, LoggingConfig, WBlocksConfig, load_config

console = Console()
logger = logging.getLogger(__name__)


def resolve_config(
    config_file: Optional[Path] = None,
    directory: Optional[Path] = None,
) -> WBlocksConfig:
    """Load configuration for a command and apply the directory argument.

    An explicitly passed config file must parse; the default one only
    produces a warning when broken.

    Raises:
        ConfigurationError: If ``config_file`` cannot be loaded
    """
    try:
        config = load_config(config_file, strict=config_file is not None)
    except ConfigLoadError as e:
        raise ConfigurationError(e.message, details={"path": e.path})

    if directory is not None:
        config.scripts.directory = directory

    return config


def _attach_log_file(settings: LoggingConfig) -> None:
    """Add a file handler for the configured log file, if any."""
    if not settings.file:
        return

    settings.file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(settings.file, encoding="utf-8")
    handler.setLevel(settings.level.upper())
    handler.setFormatter(logging.Formatter(settings.format))

    root = logging.getLogger()
    root.addHandler(handler)
    if root.level > handler.level:
        root.setLevel(handler.level)
    logger.debug(f"Logging to {settings.file}")


@handle_errors
def run(
    directory: Optional[Path] = typer.Argument(
        None,
        help="Scripts directory (default: scripts.directory from config, ./blocks).",
        file_okay=False,
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
    once: bool = typer.Option(
        False,
        "--once",
        help="Exit after loading scripts instead of running their timers.",
    ),
    run_for: Optional[float] = typer.Option(
        None,
        "--run-for",
        help="Stop after this many seconds.",
        min=0,
    ),
) -> None:
    """Load every script and run until interrupted.

    Scripts are loaded in name order from the scripts directory. A
    script that fails is reported and skipped; the others still load.
    A missing scripts directory is fatal.

    Example:
        wblocks run
        wblocks run ./blocks --once
        wblocks run --config wblocks.toml --run-for 60
    """
    from wblocks.host.asyncio_host import AsyncioHost
    from wblocks.runtime.bootstrap import ScriptRuntime, load_once, run_runtime

    config = resolve_config(config_file, directory)
    _attach_log_file(config.logging)

    host = AsyncioHost(spawn_timeout=config.shell.timeout, encoding=config.shell.encoding)
    runtime = ScriptRuntime(config, host, on_progress=print_script_progress)

    logger.info(f"Running scripts from {config.scripts.directory}")

    if once:
        report = asyncio.run(load_once(runtime))
    else:
        report = asyncio.run(run_runtime(runtime, run_for=run_for))

    if report.failed:
        console.print(
            f"[yellow]{len(report.failed)} of {len(report)} scripts failed to load[/yellow]"
        )

    elapsed = sum(entry.duration for entry in report)
    logger.info(f"Scripts ran for {format_duration(elapsed)} during loading")
