"""wblocks config command - Configuration management."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from wblocks.cli.exit_codes import ExitCode
from wblocks.cli.output import print_key_value

app = typer.Typer(help="Manage wblocks configuration.")
console = Console()


def _config_path() -> Path:
    from wblocks.config import get_config_path

    return get_config_path()


@app.command("show")
def show_config(
    section: Optional[str] = typer.Argument(
        None,
        help="Configuration section to show (scripts, timers, shell, logging, paths).",
    ),
    format: str = typer.Option(
        "table",
        "--format",
        "-f",
        help="Output format (table, yaml, json).",
    ),
) -> None:
    """Show current configuration.

    Example:
        wblocks config show
        wblocks config show shell
        wblocks config show --format yaml
    """
    from wblocks.config import export_config_json, export_config_yaml, get_config

    config = get_config()

    if format == "yaml":
        console.print(Syntax(export_config_yaml(config), "yaml", theme="monokai"))
        return
    elif format == "json":
        console.print(Syntax(export_config_json(config), "json", theme="monokai"))
        return
    elif format != "table":
        console.print(f"[red]Unknown format: {format}[/red]")
        raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

    sections = {
        "scripts": [
            ("directory", str(config.scripts.directory)),
            ("hidden_marker", config.scripts.hidden_marker),
            ("pattern", config.scripts.pattern),
            ("fatal_missing_dir", str(config.scripts.fatal_missing_dir)),
            ("settings", ", ".join(sorted(config.scripts.settings)) or "None"),
        ],
        "timers": [
            ("heartbeat_enabled", str(config.timers.heartbeat_enabled)),
            ("heartbeat_interval", str(config.timers.heartbeat_interval)),
        ],
        "shell": [
            ("program", config.shell.program),
            ("args", " ".join(config.shell.args)),
            ("timeout", str(config.shell.timeout) if config.shell.timeout is not None else "none"),
            ("encoding", config.shell.encoding),
        ],
        "logging": [
            ("level", config.logging.level),
            ("format", config.logging.format),
            ("file", str(config.logging.file) if config.logging.file else ""),
        ],
        "paths": [
            ("config_dir", str(config.config_dir)),
            ("config_file", str(_config_path())),
        ],
    }

    if section and section not in sections:
        console.print(f"[red]Unknown section: {section}[/red]")
        raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

    sections_to_show = [section] if section else list(sections)

    for sec in sections_to_show:
        table = Table(title=sec.capitalize())
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")

        for key, value in sections[sec]:
            table.add_row(key, value)

        console.print(table)
        console.print()


@app.command("set")
def set_config(
    key: str = typer.Argument(
        ...,
        help="Configuration key (format: section.key, e.g., shell.program).",
    ),
    value: str = typer.Argument(
        ...,
        help="Value to set.",
    ),
) -> None:
    """Set a configuration value.

    Example:
        wblocks config set scripts.directory ./blocks
        wblocks config set shell.program pwsh
        wblocks config set timers.heartbeat_enabled false
    """
    from wblocks.config import clear_config_cache, set_config_value

    if "." not in key:
        console.print("[red]Key must be in format: section.key[/red]")
        raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

    section, config_key = key.split(".", 1)

    try:
        set_config_value(section, config_key, value, _config_path())
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=ExitCode.CONFIGURATION_ERROR)

    # Clear the global config cache so the new value will be loaded
    clear_config_cache()
    console.print(f"[green]✓[/green] Set {section}.{config_key} = {value}")


@app.command("init")
def init_config(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration.",
    ),
    scripts_dir: Optional[Path] = typer.Option(
        None,
        "--scripts-dir",
        help="Scripts directory to record in the new configuration.",
    ),
) -> None:
    """Write a configuration file with default values.

    Example:
        wblocks config init
        wblocks config init --scripts-dir ~/blocks --force
    """
    from wblocks.config import WBlocksConfig, save_config

    config_path = _config_path()

    if config_path.exists() and not force:
        console.print(f"[yellow]Configuration already exists at {config_path}[/yellow]")
        console.print("Use --force to overwrite")
        raise typer.Exit(code=ExitCode.GENERAL_ERROR)

    config = WBlocksConfig()
    config.config_dir = config_path.parent
    if scripts_dir is not None:
        config.scripts.directory = scripts_dir

    save_config(config, config_path)

    console.print(f"[green]✓[/green] Configuration initialized at {config_path}")


@app.command("path")
def config_path() -> None:
    """Show configuration file path.

    Example:
        wblocks config path
    """
    config_file_path = _config_path()
    print_key_value(
        {
            "Config directory": str(config_file_path.parent),
            "Config file": str(config_file_path),
            "Exists": config_file_path.exists(),
        },
        console_instance=console,
    )


@app.command("validate")
def validate_config() -> None:
    """Validate current configuration.

    Warnings are printed but do not fail validation.

    Example:
        wblocks config validate
    """
    from wblocks.config import get_config, validate_config as do_validate

    config = get_config()

    console.print("[bold]Validating configuration...[/bold]")
    console.print()

    config_file = _config_path()
    if config_file.exists():
        console.print(f"  [green]✓[/green] Config file exists [dim]({config_file})[/dim]")
    else:
        console.print(f"  [yellow]![/yellow] No config file, using defaults [dim]({config_file})[/dim]")

    all_passed = True
    for error in do_validate(config):
        if error.severity == "error":
            status = "[red]✗[/red]"
            all_passed = False
        else:
            status = "[yellow]![/yellow]"
        console.print(f"  {status} [{error.severity.upper()}] {error.field}: {error.message}")

    console.print()
    if all_passed:
        console.print("[green]Configuration is valid[/green]")
    else:
        console.print("[red]Configuration has errors[/red]")
        raise typer.Exit(code=ExitCode.CONFIGURATION_ERROR)
