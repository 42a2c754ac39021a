"""Repeating timers built on a one-shot timer primitive.

The host only knows how to run a callback once after a delay. The
IntervalScheduler chains those one-shots into repeating timers: every
firing schedules the next one-shot first, then runs the user callback.
A callback that raises therefore cannot stop its own timer, and the
error is logged instead of reaching the host loop.

Coroutine functions are accepted as callbacks. The coroutine each
firing returns is handed to the host with spawn_task(), so the firing
itself never waits for it; its errors are logged the same way.

Spacing is measured from the moment each one-shot is scheduled, so a
slow callback pushes later firings back. Missed firings are not
replayed.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, NewType, Optional

from wblocks.host.primitives import HostPrimitives

logger = logging.getLogger(__name__)

IntervalId = NewType("IntervalId", int)


@dataclass(eq=False)
class IntervalHandle:
    """State of one registered timer.

    Attributes:
        interval_id: Identifier returned to the caller
        callback: Zero-argument callable to invoke
        interval: Delay between firings in seconds
        repeat: False for single-shot timers created by set_timeout()
        token: Pending one-shot token from the host, None once stopped
        fire_count: Number of times the callback was invoked
    """

    interval_id: IntervalId
    callback: Callable[[], Any]
    interval: float
    repeat: bool = True
    token: Any = None
    fire_count: int = 0

    @property
    def active(self) -> bool:
        """Check if a firing is pending."""
        return self.token is not None


class IntervalScheduler:
    """Maintains repeating timers on top of host one-shot timers.

    The scheduler owns its registry of handles. Identifiers are assigned
    from a counter starting at 1 and never reused.

    Example:
        scheduler = IntervalScheduler(host)

        interval_id = scheduler.set_interval(poll_battery, 5.0)
        ...
        scheduler.clear_interval(interval_id)
    """

    def __init__(self, host: HostPrimitives) -> None:
        """Initialize the scheduler.

        Args:
            host: Host providing schedule_once()/cancel_once()
        """
        self._host = host
        self._handles: Dict[IntervalId, IntervalHandle] = {}
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, interval_id: object) -> bool:
        return interval_id in self._handles

    @property
    def active_ids(self) -> List[IntervalId]:
        """Get identifiers of all live timers in registration order."""
        return list(self._handles.keys())

    def get(self, interval_id: IntervalId) -> Optional[IntervalHandle]:
        """Get the handle for a live timer.

        Args:
            interval_id: Timer identifier

        Returns:
            The handle, or None if unknown or cleared
        """
        return self._handles.get(interval_id)

    def set_interval(self, callback: Callable[[], Any], interval: float) -> IntervalId:
        """Invoke ``callback`` every ``interval`` seconds until cleared.

        Args:
            callback: Zero-argument callable
            interval: Seconds between firings

        Returns:
            Identifier for clear_interval()

        Raises:
            TypeError: If callback is not callable
            ValueError: If interval is negative
        """
        return self._register(callback, interval, repeat=True)

    def set_timeout(self, callback: Callable[[], Any], delay: float) -> IntervalId:
        """Invoke ``callback`` once after ``delay`` seconds.

        Shares the identifier space of set_interval(), so either clear
        method cancels it.
        """
        return self._register(callback, delay, repeat=False)

    def clear_interval(self, interval_id: IntervalId) -> None:
        """Stop a timer.

        Unknown identifiers and timers that were already cleared are
        ignored. A firing that is currently running is not interrupted,
        but nothing fires after it.

        Args:
            interval_id: Identifier returned by set_interval()
        """
        handle = self._handles.pop(interval_id, None)
        if handle is None:
            return

        if handle.token is not None:
            self._host.cancel_once(handle.token)
            handle.token = None

        logger.debug(f"Cleared timer {interval_id} after {handle.fire_count} firings")

    clear_timeout = clear_interval

    def shutdown(self) -> None:
        """Clear every live timer."""
        for interval_id in list(self._handles):
            self.clear_interval(interval_id)

    def _register(
        self,
        callback: Callable[[], Any],
        interval: float,
        repeat: bool,
    ) -> IntervalId:
        if not callable(callback):
            raise TypeError(f"Timer callback must be callable, got {type(callback).__name__}")
        if interval < 0:
            raise ValueError(f"Timer interval must be non-negative, got {interval}")

        self._last_id += 1
        interval_id = IntervalId(self._last_id)
        handle = IntervalHandle(
            interval_id=interval_id,
            callback=callback,
            interval=float(interval),
            repeat=repeat,
        )
        self._handles[interval_id] = handle
        self._arm(handle)

        kind = "interval" if repeat else "timeout"
        logger.debug(f"Registered {kind} {interval_id} ({handle.interval}s)")
        return interval_id

    def _arm(self, handle: IntervalHandle) -> None:
        interval_id = handle.interval_id
        handle.token = self._host.schedule_once(
            lambda: self._fire(interval_id),
            handle.interval,
        )

    def _fire(self, interval_id: IntervalId) -> None:
        handle = self._handles.get(interval_id)
        if handle is None:
            # Cleared after the host had already dispatched the one-shot
            return

        if handle.repeat:
            self._arm(handle)
        else:
            handle.token = None
            del self._handles[interval_id]

        handle.fire_count += 1
        try:
            result = handle.callback()
        except (Exception, SystemExit):
            # SystemExit from a script callback must not reach the host loop
            logger.exception(f"Error in timer {interval_id} callback")
            return

        if inspect.isawaitable(result):
            self._host.spawn_task(self._await_callback(interval_id, result))

    async def _await_callback(self, interval_id: IntervalId, awaitable: Awaitable[Any]) -> None:
        try:
            await awaitable
        except (Exception, SystemExit):
            logger.exception(f"Error in timer {interval_id} callback")
