"""Script context - the API surface every loaded script sees.

All scripts execute against one shared namespace owned by a
ScriptContext. The context installs the runtime helpers into that
namespace before any script runs, so scripts can call them as plain
globals:

    set_interval(update_clock, 1.0)
    body = ps_fetch("https://example.com/weather.txt")
    log.info("quoted: %s", quote("C:\\Program Files\\x"))

Values a script wants other scripts to see go through publish()/lookup()
or simply become globals of the shared namespace.
"""

from __future__ import annotations

import builtins
import logging
from typing import Any, Dict, Iterator, Mapping, Optional

from wblocks.runtime.quoting import quote_arg
from wblocks.runtime.shell import ShellDelegate
from wblocks.runtime.timers import IntervalScheduler

SCRIPT_LOGGER_NAME = "wblocks.scripts"

# Module name scripts see in __name__
SCRIPT_MODULE_NAME = "__wblocks_script__"


class ScriptContext:
    """Shared extension point handed to every loaded script.

    Attributes:
        timers: Scheduler scripts register their timers with
        shell: Delegate for shell commands and fetches
        settings: Script settings from the ``[scripts.settings]`` table
    """

    def __init__(
        self,
        timers: IntervalScheduler,
        shell: ShellDelegate,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.timers = timers
        self.shell = shell
        self.settings: Dict[str, Any] = dict(settings or {})
        self._namespace: Dict[str, Any] = {}
        self._install()

    @property
    def namespace(self) -> Dict[str, Any]:
        """Get the namespace scripts execute in."""
        return self._namespace

    def __iter__(self) -> Iterator[str]:
        return iter(self._namespace)

    def __contains__(self, name: object) -> bool:
        return name in self._namespace

    def publish(self, name: str, value: Any) -> None:
        """Make a value visible to every script as a global."""
        self._namespace[name] = value

    def lookup(self, name: str, default: Any = None) -> Any:
        """Get a shared global, or ``default`` if no script defined it."""
        return self._namespace.get(name, default)

    def ps(self, command_text: str) -> str:
        """Run a shell command and return its output."""
        return self.shell.run_shell(command_text).output

    async def ps_async(self, command_text: str) -> str:
        """Run a shell command in the executor and return its output."""
        result = await self.shell.run_shell_async(command_text)
        return result.output

    def _install(self) -> None:
        self._namespace.update({
            "__name__": SCRIPT_MODULE_NAME,
            "__builtins__": builtins,
            "context": self,
            "config": self.settings,
            "log": logging.getLogger(SCRIPT_LOGGER_NAME),
            "timers": self.timers,
            "set_interval": self.timers.set_interval,
            "clear_interval": self.timers.clear_interval,
            "set_timeout": self.timers.set_timeout,
            "clear_timeout": self.timers.clear_timeout,
            "shell": self.shell,
            "quote": quote_arg,
            "ps": self.ps,
            "ps_async": self.ps_async,
            "ps_fetch": self.shell.fetch_via_shell,
            "ps_fetch_async": self.shell.fetch_via_shell_async,
        })
