"""Global flag handling for the raw argument list.

Only ``--trace`` is a global flag. It is recognized anywhere before a
literal ``--``; from the separator on, arguments are passed through to
the workflow untouched (the separator included).
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from arcanist.core.errors import UsageError

TRACE_FLAG = "--trace"
SEPARATOR = "--"


@dataclass(frozen=True)
class Invocation:
    """Arguments of one ``arc`` run with the global flags removed.

    Parameters
    ----------
    trace:
        Whether ``--trace`` was given.
    arguments:
        Remaining arguments in their original order: the command name
        followed by the command's own arguments.
    """

    trace: bool
    arguments: tuple[str, ...]

    @property
    def command(self) -> str:
        """The command name as typed.

        Raises
        ------
        UsageError
            If no command was given.
        """
        if not self.arguments:
            raise UsageError("No command provided. Try 'arc help'.")
        return self.arguments[0]

    @property
    def command_arguments(self) -> list[str]:
        return list(self.arguments[1:])


def preprocess_arguments(raw: Sequence[str]) -> Invocation:
    """Strip global flags from ``raw`` (the argument list without argv[0])."""
    trace = False
    remaining: list[str] = []
    for index, arg in enumerate(raw):
        if arg == SEPARATOR:
            remaining.extend(raw[index:])
            break
        if arg == TRACE_FLAG:
            trace = True
            continue
        remaining.append(arg)
    return Invocation(trace=trace, arguments=tuple(remaining))
