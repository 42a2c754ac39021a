"""Host primitives the script runtime is built on.

A host provides one-shot timers, directory listing, file reads and
process spawning. The runtime only ever talks to a ``HostPrimitives``
implementation.
"""

from wblocks.host.asyncio_host import AsyncioHost
from wblocks.host.primitives import HostPrimitives, ShellResult

__all__ = [
    "AsyncioHost",
    "HostPrimitives",
    "ShellResult",
]
