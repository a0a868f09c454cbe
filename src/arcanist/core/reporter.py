"""Formatting of failures that escape the bootstrap."""
from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape

from arcanist.core.errors import Failure, FailureKind

if TYPE_CHECKING:
    from arcanist.core.context import RunContext

TRACE_HINT = "(Run with --trace for a full exception trace.)"


def report_failure(failure: Failure, context: "RunContext") -> int:
    """Print ``failure`` and return the exit status.

    In trace mode usage failures are printed and then re-raised, and
    unexpected failures are re-raised without formatting, so the
    interpreter shows the full traceback.
    """
    console = context.err_console
    if failure.kind is FailureKind.USAGE:
        console.print(f"[bold]Usage Exception:[/bold] {escape(failure.message)}", soft_wrap=True)
        if context.trace:
            console.print()
            raise failure.error
        return failure.exit_code

    if context.trace:
        raise failure.error

    message = failure.message or type(failure.error).__name__
    console.print(
        f"\n[bold]Exception:[/bold]\n{escape(message)}\n{escape(TRACE_HINT)}",
        soft_wrap=True,
    )
    return failure.exit_code
