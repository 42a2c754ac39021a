"""Host primitives backed by an asyncio event loop.

This is the host used by the ``wblocks run`` command. One-shot timers
map onto ``loop.call_later`` and coroutine callbacks onto
``loop.create_task``; file and process primitives use the standard
library directly.
"""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Callable, Coroutine, List, Optional, Set, Union

from wblocks.host.primitives import HostPrimitives, ShellResult
from wblocks.runtime.quoting import join_command_line

logger = logging.getLogger(__name__)


class AsyncioHost(HostPrimitives):
    """Host primitives driven by an asyncio event loop.

    The loop is resolved lazily so the host can be created before
    ``asyncio.run`` starts; timers must only be scheduled from inside
    the running loop.

    Example:
        async def main():
            host = AsyncioHost()
            host.schedule_once(lambda: print("tick"), 0.5)
            await asyncio.sleep(1)

        asyncio.run(main())
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        spawn_timeout: Optional[float] = None,
        encoding: str = "utf-8",
    ) -> None:
        """Initialize the host.

        Args:
            loop: Event loop to schedule on (default: the running loop)
            spawn_timeout: Seconds before a spawned process is abandoned
            encoding: Encoding for script files and process output
        """
        self._loop = loop
        self._spawn_timeout = spawn_timeout
        self._encoding = encoding
        self._heartbeats = 0
        self._tasks: Set[asyncio.Task] = set()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """Get the event loop timers are scheduled on."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    @property
    def heartbeats(self) -> int:
        """Number of heartbeats received so far."""
        return self._heartbeats

    def schedule_once(self, callback: Callable[[], None], delay: float) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, callback)

    def cancel_once(self, token: asyncio.TimerHandle) -> None:
        # TimerHandle.cancel() is already a no-op once the callback ran
        token.cancel()

    def list_directory(self, path: str) -> List[str]:
        return os.listdir(path)

    def read_file(self, path: str) -> Optional[str]:
        try:
            return Path(path).read_text(encoding=self._encoding)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Failed to read {path}: {e}")
            return None

    def spawn_process(self, argv: List[str]) -> Optional[ShellResult]:
        """Run a program, capturing stdout and stderr together.

        No intermediate shell is involved. On Windows the arguments are
        joined with the C runtime quoting rules and the resulting string
        reaches ``CreateProcess`` verbatim. Elsewhere the argument list
        is passed to ``execve`` as is.
        """
        kwargs: dict = {
            "stdout": subprocess.PIPE,
            "stderr": subprocess.STDOUT,
            "stdin": subprocess.DEVNULL,
            "timeout": self._spawn_timeout,
        }
        args: Union[str, List[str]]
        if sys.platform == "win32":
            kwargs["creationflags"] = getattr(subprocess, "CREATE_NO_WINDOW", 0)
            args = join_command_line(argv)
        else:
            args = list(argv)

        logger.debug(f"Spawning: {join_command_line(argv)}")
        try:
            completed = subprocess.run(args, **kwargs)
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"Failed to run command: {e}")
            return None

        output = completed.stdout.decode(self._encoding, errors="replace")
        return ShellResult(output=output, exit_code=completed.returncode)

    def spawn_task(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = self.loop.create_task(coro)
        # The loop only keeps weak references to tasks
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def heartbeat(self) -> None:
        self._heartbeats += 1
