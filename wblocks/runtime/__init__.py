"""Script runtime: timers, quoting, shell delegate and script loading."""

from wblocks.runtime.bootstrap import ScriptRuntime, load_once, run_runtime
from wblocks.runtime.context import ScriptContext
from wblocks.runtime.exceptions import RuntimeShimError, ScriptDirectoryError, ShellError
from wblocks.runtime.loader import LoadOutcome, LoadReport, ScriptEntry, ScriptLoader
from wblocks.runtime.quoting import join_command_line, quote_arg
from wblocks.runtime.shell import ShellDelegate
from wblocks.runtime.timers import IntervalHandle, IntervalId, IntervalScheduler

__all__ = [
    "IntervalHandle",
    "IntervalId",
    "IntervalScheduler",
    "LoadOutcome",
    "LoadReport",
    "RuntimeShimError",
    "ScriptContext",
    "ScriptDirectoryError",
    "ScriptEntry",
    "ScriptLoader",
    "ScriptRuntime",
    "ShellDelegate",
    "ShellError",
    "join_command_line",
    "load_once",
    "quote_arg",
    "run_runtime",
]
