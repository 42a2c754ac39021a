"""CLI command modules for wblocks.

This package contains the CLI command implementations and the shared
error handling and output utilities they use.
"""

from wblocks.cli import config, run, scripts, shell

from wblocks.cli.exit_codes import ExitCode
from wblocks.cli.error_handler import (
    WBlocksError,
    ConfigurationError,
    ScriptError,
    ShellCommandError,
    ValidationError,
    NotFoundError,
    handle_errors,
)
from wblocks.cli.output import (
    print_json,
    print_table,
    print_key_value,
    print_load_report,
    print_script_progress,
    format_duration,
)

__all__ = [
    # Command modules
    "config",
    "run",
    "scripts",
    "shell",
    # Exit codes
    "ExitCode",
    # Error handling
    "WBlocksError",
    "ConfigurationError",
    "ScriptError",
    "ShellCommandError",
    "ValidationError",
    "NotFoundError",
    "handle_errors",
    # Output
    "print_json",
    "print_table",
    "print_key_value",
    "print_load_report",
    "print_script_progress",
    "format_duration",
]
