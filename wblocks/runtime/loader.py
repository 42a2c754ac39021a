"""Script discovery and loading.

The ScriptLoader scans the scripts directory and executes every entry,
in name order, against the shared namespace of a ScriptContext. One
failing script never stops the others from loading:

- unreadable or empty entries are recorded as load errors
- exceptions raised while a script runs are recorded as execution errors

Only a directory that cannot be listed is fatal, because without it no
script defines the running environment.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from enum import Enum
from fnmatch import fnmatch
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Union

from wblocks.host.primitives import HostPrimitives
from wblocks.runtime.context import ScriptContext
from wblocks.runtime.exceptions import ScriptDirectoryError

logger = logging.getLogger(__name__)

# Entries whose name starts with this marker are never loaded
HIDDEN_MARKER = "."


class LoadOutcome(Enum):
    """Terminal state of a script entry."""

    SUCCESS = "success"
    LOAD_ERROR = "load_error"
    EXECUTION_ERROR = "execution_error"


@dataclass
class ScriptEntry:
    """A script discovered in the scripts directory.

    Attributes:
        name: Entry name within the directory
        path: Full path to the entry
        source: Script source, empty if it could not be read
        outcome: Result of loading, None until processed
        error: Failure description for error outcomes
        duration: Execution time in seconds
    """

    name: str
    path: str
    source: str = ""
    outcome: Optional[LoadOutcome] = None
    error: str = ""
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        """Check if the script loaded and ran without error."""
        return self.outcome == LoadOutcome.SUCCESS

    @property
    def progress_line(self) -> str:
        """Human-readable progress line for operators."""
        if self.outcome is None:
            return f"Loading {self.name}..."
        if self.ok:
            return f"Loading {self.name}... OK!"
        return f"Loading {self.name}... FAILED ({self.outcome.value}: {self.error})"


@dataclass
class LoadReport:
    """Outcomes of one discovery pass, in load order."""

    directory: str
    entries: List[ScriptEntry] = field(default_factory=list)

    def __iter__(self) -> Iterator[ScriptEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def succeeded(self) -> List[ScriptEntry]:
        return [e for e in self.entries if e.ok]

    @property
    def failed(self) -> List[ScriptEntry]:
        return [e for e in self.entries if not e.ok]

    @property
    def outcomes(self) -> List[Optional[LoadOutcome]]:
        return [e.outcome for e in self.entries]

    def summary(self) -> Dict[str, int]:
        """Count entries per outcome."""
        counts = {outcome.value: 0 for outcome in LoadOutcome}
        for entry in self.entries:
            if entry.outcome is not None:
                counts[entry.outcome.value] += 1
        counts["total"] = len(self.entries)
        return counts


ProgressCallback = Callable[[ScriptEntry], None]


def _describe_error(error: BaseException) -> str:
    message = str(error)
    if message:
        return f"{type(error).__name__}: {message}"
    return type(error).__name__


class ScriptLoader:
    """Discovers and executes scripts from a directory.

    Example:
        loader = ScriptLoader(host, context, on_progress=print_line)
        report = loader.discover_and_load("./blocks")

        for entry in report.failed:
            print(entry.name, entry.error)
    """

    def __init__(
        self,
        host: HostPrimitives,
        context: ScriptContext,
        hidden_marker: str = HIDDEN_MARKER,
        pattern: str = "*",
        fatal_missing_dir: bool = True,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Initialize the loader.

        Args:
            host: Host providing list_directory()/read_file()
            context: Context whose namespace scripts execute in
            hidden_marker: Name prefix of entries to skip
            pattern: Glob pattern entry names must match
            fatal_missing_dir: Raise when the directory cannot be listed;
                otherwise log the failure and load nothing
            on_progress: Called with each entry once it is processed
        """
        self._host = host
        self._context = context
        self._hidden_marker = hidden_marker
        self._pattern = pattern
        self._fatal_missing_dir = fatal_missing_dir
        self._on_progress = on_progress

    def discover(self, directory: Union[str, Path]) -> List[str]:
        """List loadable entry names in load order.

        Args:
            directory: Scripts directory

        Returns:
            Names without hidden entries, sorted lexicographically

        Raises:
            ScriptDirectoryError: If the directory cannot be listed
        """
        try:
            names = self._host.list_directory(str(directory))
        except OSError as e:
            raise ScriptDirectoryError(
                f'Failed to open directory "{directory}", does it exist?',
                path=str(directory),
            ) from e

        return sorted(
            name for name in names
            if not (self._hidden_marker and name.startswith(self._hidden_marker))
            and fnmatch(name, self._pattern)
        )

    def discover_and_load(self, directory: Union[str, Path]) -> LoadReport:
        """Load every script in a directory.

        Args:
            directory: Scripts directory

        Returns:
            Report with one entry per discovered script

        Raises:
            ScriptDirectoryError: If the directory cannot be listed and
                fatal_missing_dir is set
        """
        report = LoadReport(directory=str(directory))

        try:
            names = self.discover(directory)
        except ScriptDirectoryError as e:
            if self._fatal_missing_dir:
                raise
            logger.error(f"{e}; no scripts loaded")
            return report

        logger.info(f"Loading {len(names)} scripts from {directory}")

        for name in names:
            report.entries.append(self.load_entry(directory, name))

        summary = report.summary()
        logger.info(
            f"Loaded scripts: {summary['success']} ok, "
            f"{summary['load_error']} unreadable, "
            f"{summary['execution_error']} failed"
        )
        return report

    def load_entry(self, directory: Union[str, Path], name: str) -> ScriptEntry:
        """Read and execute a single entry.

        Never raises for script failures; the outcome is recorded on the
        returned entry instead.
        """
        entry = ScriptEntry(name=name, path=os.path.join(str(directory), name))

        source = self._host.read_file(entry.path)
        if not source:
            entry.outcome = LoadOutcome.LOAD_ERROR
            entry.error = f"Failed to load {name}"
            logger.error(f"Failed to load script '{name}' from {entry.path}")
        else:
            entry.source = source
            self._execute(entry)

        logger.info(entry.progress_line)
        if self._on_progress:
            self._on_progress(entry)

        return entry

    def _execute(self, entry: ScriptEntry) -> None:
        started = time.monotonic()
        try:
            code = compile(entry.source, entry.path, "exec")
            exec(code, self._context.namespace)
        except (Exception, SystemExit) as e:
            # SystemExit included: a script must not terminate the host
            entry.outcome = LoadOutcome.EXECUTION_ERROR
            entry.error = _describe_error(e)
            logger.error(f"Error running script '{entry.name}': {entry.error}", exc_info=True)
        else:
            entry.outcome = LoadOutcome.SUCCESS
        finally:
            entry.duration = time.monotonic() - started
