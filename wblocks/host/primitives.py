"""Host primitives consumed by the script runtime.

The runtime never touches the event loop, the filesystem or process
creation directly. Everything goes through a ``HostPrimitives``
implementation so the same runtime can run inside a native host, an
asyncio loop, or a deterministic fake in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Coroutine, List, Optional


@dataclass
class ShellResult:
    """Result of one spawned process.

    Attributes:
        output: Captured stdout and stderr, interleaved
        exit_code: Process exit status
    """

    output: str
    exit_code: int = 0

    @property
    def success(self) -> bool:
        """Check if the process exited with status 0."""
        return self.exit_code == 0


class HostPrimitives(ABC):
    """Abstract contract for the primitives a host exposes to scripts.

    Implementations must provide:
    - schedule_once()/cancel_once(): one-shot delayed callbacks
    - list_directory(): directory enumeration
    - read_file(): whole-file reads
    - spawn_process(): run a program and capture its output
    - spawn_task(): run a coroutine on the host loop

    Implementations may override:
    - heartbeat(): yield point called periodically by the runtime
    """

    @abstractmethod
    def schedule_once(self, callback: Callable[[], None], delay: float) -> Any:
        """Invoke ``callback`` once after ``delay`` seconds.

        Args:
            callback: Zero-argument callable
            delay: Delay in seconds

        Returns:
            Opaque token accepted by cancel_once()
        """

    @abstractmethod
    def cancel_once(self, token: Any) -> None:
        """Cancel a pending one-shot callback.

        Cancelling a token that already fired must be a no-op.
        """

    @abstractmethod
    def list_directory(self, path: str) -> List[str]:
        """List entry names in a directory.

        Raises:
            OSError: If the directory does not exist or is unreadable
        """

    @abstractmethod
    def read_file(self, path: str) -> Optional[str]:
        """Read a whole file as text.

        Returns:
            File content, or None if the file cannot be read
        """

    @abstractmethod
    def spawn_process(self, argv: List[str]) -> Optional[ShellResult]:
        """Run a program and wait for it to finish.

        Args:
            argv: Program followed by its arguments, unquoted

        Returns:
            The process result, or None if the process could not be created
        """

    @abstractmethod
    def spawn_task(self, coro: Coroutine[Any, Any, Any]) -> Any:
        """Run a coroutine on the host loop without waiting for it.

        Used for timer callbacks that are coroutine functions. The
        coroutine handles its own errors.

        Returns:
            Opaque task handle
        """

    def heartbeat(self) -> None:
        """Give the host a chance to process its own work."""
