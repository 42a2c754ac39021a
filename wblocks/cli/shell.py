"""wblocks shell command - Quote arguments and run shell commands."""

from pathlib import Path
from typing import List, Optional

import typer

from wblocks.cli.error_handler import handle_errors
from wblocks.cli.run import resolve_config
from wblocks.runtime.quoting import join_command_line, quote_arg

app = typer.Typer(help="Quote arguments and run commands through the configured shell.")

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


def _build_delegate(config_file: Optional[Path]):
    from wblocks.host.asyncio_host import AsyncioHost
    from wblocks.runtime.shell import ShellDelegate

    config = resolve_config(config_file)
    host = AsyncioHost(spawn_timeout=config.shell.timeout, encoding=config.shell.encoding)
    return ShellDelegate(host, program=config.shell.program, args=config.shell.args)


@app.command("quote")
def quote(
    args: List[str] = typer.Argument(
        ...,
        help="Arguments to quote. Use -- before arguments starting with '-'.",
    ),
    join: bool = typer.Option(
        False,
        "--join",
        "-j",
        help="Print a single command line instead of one argument per line.",
    ),
) -> None:
    """Quote arguments the way the Windows C runtime splits them.

    Example:
        wblocks shell quote "dir name" plain
        wblocks shell quote --join notepad "C:\\My Files\\a.txt"
    """
    if join:
        typer.echo(join_command_line(args))
        return

    for arg in args:
        typer.echo(quote_arg(arg))


@app.command("run")
@handle_errors
def run_command(
    command: str = typer.Argument(..., help="Command text for the shell."),
    config_file: Optional[Path] = CONFIG_OPTION,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Print the command line instead of running it.",
    ),
) -> None:
    """Run a command through the configured shell and print its output.

    The exit status of the shell is passed through.

    Example:
        wblocks shell run "Get-Date -Format o"
        wblocks shell run --dry-run "Write-Output 'a b'"
    """
    delegate = _build_delegate(config_file)

    if dry_run:
        typer.echo(delegate.build_command_line(command))
        return

    result = delegate.run_shell(command)
    typer.echo(result.output, nl=False)

    if not result.success:
        raise typer.Exit(code=result.exit_code)


@app.command("fetch")
@handle_errors
def fetch(
    url: str = typer.Argument(..., help="URL to download."),
    config_file: Optional[Path] = CONFIG_OPTION,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Print the command line instead of running it.",
    ),
) -> None:
    """Download a URL through the configured shell and print the body.

    Example:
        wblocks shell fetch https://example.com/status
    """
    delegate = _build_delegate(config_file)

    if dry_run:
        typer.echo(delegate.build_command_line(delegate.build_fetch_command(url)))
        return

    typer.echo(delegate.fetch_via_shell(url), nl=False)
