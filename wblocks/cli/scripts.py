"""wblocks scripts command - Inspect the scripts directory."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from wblocks.cli.error_handler import handle_errors
from wblocks.cli.exit_codes import ExitCode
from wblocks.cli.output import print_json, print_load_report, print_table, report_to_dict
from wblocks.cli.run import resolve_config

app = typer.Typer(help="Inspect and check scripts.")
console = Console()

DIRECTORY_ARGUMENT = typer.Argument(
    None,
    help="Scripts directory (default: scripts.directory from config).",
    file_okay=False,
)

CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to configuration file.",
    exists=True,
    file_okay=True,
    dir_okay=False,
    resolve_path=True,
)


def _build_runtime(config_file: Optional[Path], directory: Optional[Path]):
    from wblocks.host.asyncio_host import AsyncioHost
    from wblocks.runtime.bootstrap import ScriptRuntime

    config = resolve_config(config_file, directory)
    host = AsyncioHost(spawn_timeout=config.shell.timeout, encoding=config.shell.encoding)
    return config, ScriptRuntime(config, host)


@app.command("list")
@handle_errors
def list_scripts(
    directory: Optional[Path] = DIRECTORY_ARGUMENT,
    config_file: Optional[Path] = CONFIG_OPTION,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON.",
    ),
) -> None:
    """List scripts in the order they would load, without running them.

    Example:
        wblocks scripts list
        wblocks scripts list ./blocks --json
    """
    config, runtime = _build_runtime(config_file, directory)
    names = runtime.loader.discover(config.scripts.directory)

    if json_output:
        print_json({
            "directory": str(config.scripts.directory),
            "scripts": names,
        })
        return

    if not names:
        console.print(f"[yellow]No scripts found in {config.scripts.directory}[/yellow]")
        return

    rows = [
        {"order": index, "name": name, "path": str(config.scripts.directory / name)}
        for index, name in enumerate(names, start=1)
    ]
    print_table(
        rows,
        ["order", "name", "path"],
        title=f"Scripts in {config.scripts.directory}",
        column_styles={"name": "cyan", "path": "dim"},
    )


@app.command("check")
@handle_errors
def check_scripts(
    directory: Optional[Path] = DIRECTORY_ARGUMENT,
    config_file: Optional[Path] = CONFIG_OPTION,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON.",
    ),
) -> None:
    """Load every script once and report the outcome of each.

    Exits with a script error status if any script failed to load or
    raised while running.

    Example:
        wblocks scripts check
        wblocks scripts check ./blocks --json
    """
    from wblocks.runtime.bootstrap import load_once

    _, runtime = _build_runtime(config_file, directory)
    report = asyncio.run(load_once(runtime))

    if json_output:
        print_json(report_to_dict(report))
    else:
        print_load_report(report)

    if report.failed:
        raise typer.Exit(code=ExitCode.SCRIPT_ERROR)
