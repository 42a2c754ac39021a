"""Command-line argument quoting for Windows targets.

Implements the quoting rules the Microsoft C runtime uses when it splits
a command line back into ``argv``. A quoted argument survives the trip
through ``CreateProcess`` as exactly one argument with its original text.

These rules are not POSIX shell rules. Do not use them to build command
lines for ``sh``/``bash``.
"""

from __future__ import annotations

from typing import Iterable

# Characters that force an argument to be quoted.
WHITESPACE = frozenset(" \t\n\v")


def needs_quoting(argument: str) -> bool:
    """Check whether an argument contains a whitespace character."""
    return any(ch in WHITESPACE for ch in argument)


def quote_arg(argument: str) -> str:
    """Quote a single argument for a Windows command line.

    Arguments without whitespace are returned unchanged. Otherwise the
    argument is wrapped in double quotes and backslash runs are escaped:

    - ``n`` backslashes before a ``"`` become ``2n + 1`` backslashes
      followed by the quote
    - ``n`` backslashes at the end become ``2n`` backslashes, so the
      closing quote is not escaped
    - ``n`` backslashes before any other character stay as they are

    Args:
        argument: Raw argument text

    Returns:
        The argument in a form ``CommandLineToArgvW`` parses back into
        the original text

    Example:
        >>> quote_arg("red")
        'red'
        >>> quote_arg('say "hi"')
        '"say \\\\"hi\\\\""'
    """
    if not needs_quoting(argument):
        return argument

    parts = ['"']
    backslashes = 0

    for ch in argument:
        if ch == "\\":
            backslashes += 1
            continue

        if ch == '"':
            parts.append("\\" * (backslashes * 2 + 1))
        else:
            parts.append("\\" * backslashes)
        parts.append(ch)
        backslashes = 0

    # Trailing run sits right before the closing quote
    parts.append("\\" * (backslashes * 2))
    parts.append('"')

    return "".join(parts)


def join_command_line(argv: Iterable[str]) -> str:
    """Build a command line from an argument vector.

    Args:
        argv: Program name followed by its arguments

    Returns:
        Space-separated command line with every element quoted
    """
    return " ".join(quote_arg(arg) for arg in argv)
