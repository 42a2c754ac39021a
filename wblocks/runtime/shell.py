"""Shell delegate for running commands from scripts.

Scripts get two helpers on top of the host's process primitive:

- ``ps(command)`` runs a command through the configured shell
  (PowerShell by default) with the command quoted as one argument
- ``ps_fetch(url)`` performs an HTTP GET through that shell and returns
  the response body

Both have ``*_async`` variants that run the blocking spawn in the
event loop's default executor.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from wblocks.host.primitives import HostPrimitives, ShellResult
from wblocks.runtime.exceptions import ShellError
from wblocks.runtime.quoting import join_command_line

logger = logging.getLogger(__name__)

DEFAULT_SHELL_PROGRAM = "powershell"
DEFAULT_SHELL_ARGS = ["-Command"]

# Suppresses the Invoke-WebRequest progress bar, which otherwise ends up
# in the captured output
FETCH_TEMPLATE = "$ProgressPreference='SilentlyContinue';$(Invoke-WebRequest '{url}').Content"


def escape_single_quotes(text: str) -> str:
    """Double every single quote so text fits in a PowerShell '...' literal."""
    return text.replace("'", "''")


class ShellDelegate:
    """Runs shell commands through the host's process primitive.

    Example:
        shell = ShellDelegate(host)
        result = shell.run_shell("Get-Date -Format o")
        print(result.output)

        body = shell.fetch_via_shell("https://example.com/status")
    """

    def __init__(
        self,
        host: HostPrimitives,
        program: str = DEFAULT_SHELL_PROGRAM,
        args: Optional[List[str]] = None,
    ) -> None:
        """Initialize the delegate.

        Args:
            host: Host providing spawn_process()
            program: Shell executable
            args: Arguments placed before the command text
        """
        self._host = host
        self._program = program
        self._args = list(DEFAULT_SHELL_ARGS if args is None else args)

    @property
    def program(self) -> str:
        """Get the shell executable."""
        return self._program

    def build_argv(self, command_text: str) -> List[str]:
        """Build the argument vector that runs ``command_text`` in the shell."""
        return [self._program, *self._args, command_text]

    def build_command_line(self, command_text: str) -> str:
        """Build the full command line for a shell command.

        This is the string Windows hands to the shell; it is also what
        ``--dry-run`` prints.

        Args:
            command_text: Command for the shell to run

        Returns:
            Command line with the command text quoted as a single argument
        """
        return join_command_line(self.build_argv(command_text))

    def build_fetch_command(self, url: str) -> str:
        """Build the shell command that downloads ``url``.

        Single quotes in the URL are doubled before the command is
        quoted for the command line.
        """
        return FETCH_TEMPLATE.format(url=escape_single_quotes(url))

    def run_shell(self, command_text: str) -> ShellResult:
        """Run a command through the shell and wait for it.

        Args:
            command_text: Command for the shell to run

        Returns:
            Output and exit code, unchanged from the process

        Raises:
            ShellError: If the process could not be created
        """
        argv = self.build_argv(command_text)
        command_line = join_command_line(argv)
        result = self._host.spawn_process(argv)
        if result is None:
            raise ShellError("failed to run command", command_line=command_line)

        if not result.success:
            logger.debug(f"Shell command exited with {result.exit_code}: {command_line}")
        return result

    def fetch_via_shell(self, url: str) -> str:
        """Fetch a URL through the shell.

        Args:
            url: URL to GET

        Returns:
            Response body as printed by the shell

        Raises:
            ShellError: If the shell process could not be created
        """
        return self.run_shell(self.build_fetch_command(url)).output

    async def run_shell_async(self, command_text: str) -> ShellResult:
        """Run a shell command without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.run_shell, command_text)

    async def fetch_via_shell_async(self, url: str) -> str:
        """Fetch a URL through the shell without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.fetch_via_shell, url)
