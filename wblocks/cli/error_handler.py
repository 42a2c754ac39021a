"""Global exception handling for wblocks.

This module provides centralized error handling through custom exception
classes and a decorator that ensures consistent error reporting and
exit codes across all CLI commands.
"""

from functools import wraps
from typing import Any, Callable, TypeVar
import logging

import typer
from rich.console import Console

from wblocks.cli.exit_codes import ExitCode
from wblocks.runtime.exceptions import ScriptDirectoryError, ShellError

# Console for error output (stderr)
console = Console(stderr=True)

# Logger for error logging
logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class WBlocksError(Exception):
    """Base exception for the wblocks CLI.

    Attributes:
        message: Error message
        exit_code: Exit code to use when exiting
        details: Optional dictionary of additional error details
    """

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Error message
            exit_code: Optional override for exit code
            details: Optional dictionary of additional error details
        """
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(WBlocksError):
    """Configuration-related error.

    Examples:
        - Config file is not valid TOML
        - Invalid configuration value
    """

    exit_code = ExitCode.CONFIGURATION_ERROR


class ScriptError(WBlocksError):
    """Script-related error.

    Examples:
        - Scripts directory missing or unreadable
        - A script failed during ``scripts check``
    """

    exit_code = ExitCode.SCRIPT_ERROR


class ShellCommandError(WBlocksError):
    """Shell process could not be created."""

    exit_code = ExitCode.SHELL_ERROR


class ValidationError(WBlocksError):
    """Validation error for user input."""

    exit_code = ExitCode.INVALID_ARGUMENT


class NotFoundError(WBlocksError):
    """Resource not found error."""

    exit_code = ExitCode.NOT_FOUND


def _report(error: WBlocksError) -> None:
    logger.debug(
        f"{type(error).__name__}: {error.message}",
        extra={"exit_code": error.exit_code, "details": error.details},
    )

    console.print(f"[red]Error:[/red] {error.message}")

    if error.details:
        for key, value in error.details.items():
            console.print(f"  [dim]{key}:[/dim] {value}")


def translate_error(error: Exception) -> WBlocksError | None:
    """Map runtime exceptions onto CLI errors.

    Args:
        error: Exception raised by the runtime

    Returns:
        The matching WBlocksError, or None if there is no mapping
    """
    if isinstance(error, WBlocksError):
        return error
    if isinstance(error, ScriptDirectoryError):
        return ScriptError(error.message)
    if isinstance(error, ShellError):
        return ShellCommandError(error.message, details={"command": error.command_line} if error.command_line else None)
    return None


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling across CLI commands.

    This decorator catches all exceptions and converts them to appropriate
    error messages and exit codes. It handles:

    - WBlocksError subclasses and mapped runtime errors: one error line
      on stderr with the matching exit code
    - KeyboardInterrupt: Show cancellation message with exit code 130
    - Other exceptions: Show generic error with option for verbose details

    Args:
        func: The function to wrap

    Returns:
        Wrapped function with error handling

    Example:
        @app.command()
        @handle_errors
        def my_command():
            raise ConfigurationError("Invalid config")
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)

        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user.[/yellow]")
            logger.info("Operation cancelled by user (KeyboardInterrupt)")
            raise typer.Exit(code=ExitCode.CANCELLED)

        except typer.Exit:
            # Re-raise typer.Exit as-is
            raise

        except Exception as e:
            error = translate_error(e)
            if error is not None:
                _report(error)
                raise typer.Exit(code=error.exit_code)

            # Log full exception for debugging
            logger.exception("Unexpected error occurred")

            console.print(f"[red]Unexpected error:[/red] {e}")
            console.print("[dim]Run with --verbose for more details[/dim]")

            raise typer.Exit(code=ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore[return-value]
