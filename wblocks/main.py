"""Main CLI entry point for wblocks."""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from wblocks import __app_name__, __version__
from wblocks.cli import config, run, scripts, shell
from wblocks.cli.exit_codes import ExitCode

# Create the main Typer app
app = typer.Typer(
    name=__app_name__,
    help="wblocks - Runtime for timer-driven user scripts.",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Console for CLI output
console = Console()

# Register commands
app.command(name="run")(run.run)
app.add_typer(scripts.app, name="scripts")
app.add_typer(shell.app, name="shell")
app.add_typer(config.app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"{__app_name__} v{__version__}")
        raise typer.Exit(code=ExitCode.SUCCESS)


def _setup_logging(
    verbose: bool = False,
    debug: bool = False,
    quiet: bool = False,
    log_file: Optional[Path] = None,
) -> None:
    """Set up logging configuration based on CLI options.

    Args:
        verbose: Enable INFO level logging
        debug: Enable DEBUG level logging
        quiet: Only show errors
        log_file: Optional log file path
    """
    # Determine log level
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    # Configure format
    if debug:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    handlers.append(console_handler)

    # Add file handler if specified
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log debug to file
        handlers.append(file_handler)
        level = logging.DEBUG

    # Configure root logger
    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging configured: level={logging.getLevelName(level)}, debug={debug}")


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output (INFO level logging).",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode (DEBUG level logging with file and line).",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors.",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log to file (logs DEBUG level regardless of console settings).",
    ),
) -> None:
    """wblocks - Runtime for timer-driven user scripts.

    Loads every script in the scripts directory, in name order, and keeps
    the timers they register running.

    [bold]Commands:[/bold]

    • [cyan]run[/cyan] - Load scripts and run until interrupted
    • [cyan]scripts[/cyan] - List scripts or check that they load
    • [cyan]shell[/cyan] - Quote arguments and run shell commands
    • [cyan]config[/cyan] - Manage configuration

    [bold]Examples:[/bold]

        wblocks run ./blocks
        wblocks scripts check
        wblocks shell quote "dir name"
    """
    # Validate mutually exclusive options
    if quiet and (verbose or debug):
        console.print("[red]Error:[/red] --quiet cannot be combined with --verbose or --debug")
        raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

    _setup_logging(verbose=verbose, debug=debug, quiet=quiet, log_file=log_file)

    logger = logging.getLogger(__name__)
    logger.debug(f"wblocks v{__version__} starting")
    logger.debug(f"Options: verbose={verbose}, debug={debug}, quiet={quiet}")


__all__ = ["app", "console"]


if __name__ == "__main__":
    app()
