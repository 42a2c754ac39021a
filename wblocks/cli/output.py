"""Output formatting utilities for wblocks.

This module provides standardized output for the CLI: JSON, tables,
key-value listings, and the per-script progress lines printed while
scripts load.
"""

import json
from typing import Any, Dict, List

from rich.console import Console
from rich.json import JSON as RichJSON
from rich.markup import escape
from rich.table import Table

from wblocks.runtime.loader import LoadOutcome, LoadReport, ScriptEntry

# Default console for output
console = Console()

OUTCOME_STYLES = {
    LoadOutcome.SUCCESS: "[green]ok[/green]",
    LoadOutcome.LOAD_ERROR: "[yellow]load error[/yellow]",
    LoadOutcome.EXECUTION_ERROR: "[red]execution error[/red]",
}


def print_json(data: Any, console_instance: Console | None = None) -> None:
    """Print data as formatted JSON.

    Args:
        data: Data to print (must be JSON-serializable)
        console_instance: Optional custom console instance
    """
    prog_console = console_instance or console

    json_str = json.dumps(data, indent=2, default=str)
    prog_console.print(RichJSON(json_str))


def print_table(
    data: List[Dict[str, Any]],
    columns: List[str],
    title: str | None = None,
    column_styles: Dict[str, str] | None = None,
    console_instance: Console | None = None,
) -> None:
    """Print data as a formatted table.

    Args:
        data: List of dictionaries containing row data
        columns: List of column keys to display
        title: Optional table title
        column_styles: Optional dict mapping column names to Rich styles
        console_instance: Optional custom console instance

    Example:
        data = [
            {"name": "10-clock.py", "outcome": "ok"},
            {"name": "20-battery.py", "outcome": "execution error"},
        ]
        print_table(data, ["name", "outcome"], title="Scripts")
    """
    prog_console = console_instance or console
    column_styles = column_styles or {}

    table = Table(title=title)

    for col in columns:
        style = column_styles.get(col)
        header = col.replace("_", " ").title()
        table.add_column(header, style=style)

    for row in data:
        values = []
        for col in columns:
            value = row.get(col, "")
            if value is None:
                value = ""
            elif isinstance(value, bool):
                value = "[green]Yes[/green]" if value else "[red]No[/red]"
            values.append(str(value))

        table.add_row(*values)

    prog_console.print(table)


def print_key_value(
    data: Dict[str, Any],
    title: str | None = None,
    key_style: str = "cyan",
    console_instance: Console | None = None,
) -> None:
    """Print data as key-value pairs.

    Args:
        data: Dictionary of key-value pairs
        title: Optional title
        key_style: Style for keys
        console_instance: Optional custom console instance
    """
    prog_console = console_instance or console

    if title:
        prog_console.print(f"[bold]{title}[/bold]")
        prog_console.print()

    max_key_len = max(len(str(k)) for k in data.keys()) if data else 0

    for key, value in data.items():
        if value is None or value == "":
            value = "[dim]-[/dim]"
        elif isinstance(value, bool):
            value = "[green]Yes[/green]" if value else "[red]No[/red]"
        elif isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value) or "[dim]-[/dim]"
        prog_console.print(f"  [{key_style}]{str(key).ljust(max_key_len)}[/{key_style}]  {value}")


def format_duration(seconds: float) -> str:
    """Format duration in human-readable format.

    Args:
        seconds: Duration in seconds

    Returns:
        Human-readable duration string

    Example:
        format_duration(0.0042)  # Returns "4ms"
        format_duration(90)  # Returns "1m 30s"
    """
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


def print_script_progress(entry: ScriptEntry, console_instance: Console | None = None) -> None:
    """Print the progress line for one loaded script.

    Args:
        entry: Processed script entry
        console_instance: Optional custom console instance
    """
    prog_console = console_instance or console
    name = escape(entry.name)

    if entry.ok:
        prog_console.print(f"Loading {name}... [green]OK![/green]")
    else:
        prog_console.print(f"Loading {name}... [red]FAILED[/red] [dim]- {escape(entry.error)}[/dim]")


def report_to_dict(report: LoadReport) -> Dict[str, Any]:
    """Convert a load report to a JSON-serializable dictionary."""
    return {
        "directory": report.directory,
        "summary": report.summary(),
        "scripts": [
            {
                "name": entry.name,
                "path": entry.path,
                "outcome": entry.outcome.value if entry.outcome else None,
                "error": entry.error or None,
                "duration": round(entry.duration, 6),
            }
            for entry in report.entries
        ],
    }


def print_load_report(report: LoadReport, console_instance: Console | None = None) -> None:
    """Print a load report as a table followed by a summary line.

    Args:
        report: Report returned by the loader
        console_instance: Optional custom console instance
    """
    prog_console = console_instance or console

    rows = [
        {
            "name": escape(entry.name),
            "outcome": OUTCOME_STYLES.get(entry.outcome, "-") if entry.outcome else "-",
            "time": format_duration(entry.duration),
            "error": escape(entry.error),
        }
        for entry in report.entries
    ]
    print_table(
        rows,
        ["name", "outcome", "time", "error"],
        title=f"Scripts in {report.directory}",
        column_styles={"name": "cyan"},
        console_instance=prog_console,
    )

    summary = report.summary()
    prog_console.print(
        f"{summary['total']} scripts: "
        f"[green]{summary['success']} ok[/green], "
        f"[yellow]{summary['load_error']} unreadable[/yellow], "
        f"[red]{summary['execution_error']} failed[/red]"
    )
