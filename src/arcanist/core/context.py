"""Per-invocation context threaded through every bootstrap component."""
from __future__ import annotations

import getpass
import os
import socket
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import httpx
from rich.console import Console


def current_user() -> str:
    """Return the OS user name, preferring ``$USER``."""
    return os.environ.get("USER") or getpass.getuser()


@dataclass(frozen=True)
class RunContext:
    """Process-level facts and settings for one invocation.

    ``trace`` is decided once by argument preprocessing and never
    changes; components read it from here instead of global state.
    ``transport`` lets tests substitute an ``httpx.MockTransport`` for
    the conduit connection.
    """

    argv: tuple[str, ...]
    trace: bool = False
    cwd: Path = field(default_factory=Path.cwd)
    user: str = field(default_factory=current_user)
    hostname: str = field(default_factory=socket.gethostname)
    err_console: Console = field(default_factory=lambda: Console(stderr=True))
    transport: httpx.BaseTransport | None = None

    @classmethod
    def from_argv(cls, argv: Sequence[str], *, trace: bool, **overrides: object) -> "RunContext":
        return cls(argv=tuple(argv), trace=trace, **overrides)  # type: ignore[arg-type]

    @property
    def command_line(self) -> str:
        """The full original command line, program name included."""
        return " ".join(self.argv)
