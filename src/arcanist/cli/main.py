"""Console entry point for arcanist.

Invoked as::

    arc [--trace] [--] COMMAND [ARGS]...

or, during development::

    python -m arcanist.cli.main

Global flags are stripped by :mod:`arcanist.core.arguments` rather than
by click, because ``--trace`` is accepted anywhere before ``--`` and the
separator itself must reach the workflow. Each workflow parses its own
arguments with click.
"""
from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import NoReturn

from rich.console import Console
from rich.logging import RichHandler

from arcanist.core.arguments import preprocess_arguments
from arcanist.core.bootstrap import run


def configure_logging(trace: bool) -> None:
    """Send ``arcanist`` log records to stderr: DEBUG in trace mode, else WARNING."""
    logger = logging.getLogger("arcanist")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if trace else logging.WARNING)


def main(argv: Sequence[str] | None = None) -> NoReturn:
    """Run ``arc`` with ``argv`` (defaults to ``sys.argv``) and exit."""
    argv = list(sys.argv if argv is None else argv)
    configure_logging(preprocess_arguments(argv[1:]).trace)
    sys.exit(run(argv))


if __name__ == "__main__":
    main()
