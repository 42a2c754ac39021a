"""Runtime bootstrap for hosted scripts.

This module wires the runtime together:
- Builds the timer scheduler, shell delegate and script context
- Registers the host heartbeat as a repeating timer
- Loads every script from the configured directory
- Runs until a shutdown signal and clears all timers on the way out
"""

import asyncio
import logging
import signal
from typing import Optional

from wblocks.config import WBlocksConfig
from wblocks.host.primitives import HostPrimitives
from wblocks.runtime.context import ScriptContext
from wblocks.runtime.loader import LoadReport, ProgressCallback, ScriptLoader
from wblocks.runtime.shell import ShellDelegate
from wblocks.runtime.timers import IntervalId, IntervalScheduler

logger = logging.getLogger(__name__)


class ScriptRuntime:
    """Bootstraps and runs the script environment.

    Attributes:
        _config: wblocks configuration
        _host: Host primitives everything is built on
        _scheduler: Timer scheduler shared by all scripts
        _context: Context scripts execute in
        _heartbeat_id: Timer driving host.heartbeat(), if enabled
        _shutdown_event: Event to signal shutdown

    Example:
        runtime = ScriptRuntime(config, AsyncioHost())

        report = runtime.start()
        await runtime.run_until_shutdown()
        runtime.stop()
    """

    def __init__(
        self,
        config: WBlocksConfig,
        host: HostPrimitives,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Initialize the runtime.

        Args:
            config: wblocks configuration
            host: Host primitives
            on_progress: Called with each script entry as it loads
        """
        self._config = config
        self._host = host
        self._on_progress = on_progress

        self._scheduler = IntervalScheduler(host)
        self._shell = ShellDelegate(
            host,
            program=config.shell.program,
            args=config.shell.args,
        )
        self._context = ScriptContext(
            self._scheduler,
            self._shell,
            settings=config.scripts.settings,
        )
        self._loader = ScriptLoader(
            host,
            self._context,
            hidden_marker=config.scripts.hidden_marker,
            pattern=config.scripts.pattern,
            fatal_missing_dir=config.scripts.fatal_missing_dir,
            on_progress=on_progress,
        )

        self._heartbeat_id: Optional[IntervalId] = None
        self._report: Optional[LoadReport] = None
        self._running = False
        self._shutdown_event: Optional[asyncio.Event] = None

    @property
    def scheduler(self) -> IntervalScheduler:
        return self._scheduler

    @property
    def context(self) -> ScriptContext:
        return self._context

    @property
    def shell(self) -> ShellDelegate:
        return self._shell

    @property
    def loader(self) -> ScriptLoader:
        return self._loader

    @property
    def report(self) -> Optional[LoadReport]:
        """Get the report of the last start(), if any."""
        return self._report

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> LoadReport:
        """Install the heartbeat and load all scripts.

        Returns:
            Outcomes of the scripts that were loaded

        Raises:
            ScriptDirectoryError: If the scripts directory cannot be
                listed and fatal_missing_dir is set
        """
        logger.info("Starting script runtime...")

        if self._config.timers.heartbeat_enabled:
            self._heartbeat_id = self._scheduler.set_interval(
                self._host.heartbeat,
                self._config.timers.heartbeat_interval,
            )
            logger.debug(f"Heartbeat installed every {self._config.timers.heartbeat_interval}s")

        try:
            self._report = self._loader.discover_and_load(self._config.scripts.directory)
        except Exception:
            self._scheduler.shutdown()
            raise

        self._running = True
        logger.info(f"Script runtime started with {len(self._scheduler)} active timers")
        return self._report

    def stop(self) -> None:
        """Clear every timer, including those registered by scripts."""
        logger.info("Stopping script runtime...")
        self._running = False
        self._scheduler.shutdown()
        self._heartbeat_id = None
        logger.info("Script runtime stopped")

    async def run_until_shutdown(self, run_for: Optional[float] = None) -> None:
        """Let the host loop drive timers until shutdown is requested.

        Args:
            run_for: Stop on its own after this many seconds
        """
        event = self._get_shutdown_event()
        if run_for is None:
            await event.wait()
            return

        try:
            await asyncio.wait_for(event.wait(), timeout=run_for)
        except asyncio.TimeoutError:
            logger.info(f"Run time of {run_for}s elapsed")

    def request_shutdown(self) -> None:
        """Request runtime shutdown.

        This sets the shutdown event, which will cause run_until_shutdown()
        to return.
        """
        logger.info("Shutdown requested")
        self._get_shutdown_event().set()

    def _get_shutdown_event(self) -> asyncio.Event:
        # Created lazily so it binds to the loop that awaits it
        if self._shutdown_event is None:
            self._shutdown_event = asyncio.Event()
        return self._shutdown_event


async def load_once(runtime: ScriptRuntime) -> LoadReport:
    """Start a runtime, load its scripts and stop it again.

    Must run inside the event loop because starting registers timers.
    """
    try:
        return runtime.start()
    finally:
        runtime.stop()


async def run_runtime(runtime: ScriptRuntime, run_for: Optional[float] = None) -> LoadReport:
    """Run a script runtime with signal handling.

    Sets up SIGINT/SIGTERM handlers for graceful shutdown, starts the
    runtime and waits until a signal arrives or ``run_for`` elapses.

    Args:
        runtime: Runtime to run
        run_for: Optional time limit in seconds

    Returns:
        The load report from start()
    """
    loop = asyncio.get_running_loop()

    def handle_signal(sig: signal.Signals) -> None:
        logger.info(f"Received signal {sig.name}, initiating shutdown...")
        runtime.request_shutdown()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, lambda s=sig: handle_signal(s))
        except (NotImplementedError, RuntimeError):
            # Windows doesn't support add_signal_handler
            signal.signal(sig, lambda signum, frame: handle_signal(signal.Signals(signum)))

    try:
        report = runtime.start()
        await runtime.run_until_shutdown(run_for=run_for)
    finally:
        runtime.stop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass

    return report
