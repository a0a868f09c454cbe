"""Error types raised during bootstrap and the tagged failure value.

Components below the top-level wrapper raise; only
:func:`arcanist.core.bootstrap.run` catches, converting whatever escaped
into a :class:`Failure` whose ``kind`` decides how it is reported.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ArcanistError(Exception):
    """Base class for errors raised by arcanist itself."""


class UsageError(ArcanistError):
    """A user-caused condition: bad invocation or incomplete project setup."""


class UnknownCommandError(UsageError):
    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Unknown command '{command}'. Try 'arc help'.")


class MissingConduitURIError(UsageError):
    def __init__(self) -> None:
        super().__init__(
            "No Conduit URI is specified in the .arcconfig file for this "
            "project. Specify the Conduit URI for the host Differential is "
            "running on."
        )


class UnrecognizedUserError(UsageError):
    def __init__(self, user_name: str) -> None:
        self.user_name = user_name
        super().__init__(f"Username '{user_name}' is not recognized.")


class LibraryNotFoundError(UsageError):
    """A library listed in ``phutil_libraries`` does not exist on disk."""

    def __init__(self, name: str, location: str) -> None:
        self.library_name = name
        self.location = location
        super().__init__(
            f"Library '{name}' declared in 'phutil_libraries' was not found "
            f"at '{location}'."
        )


class LibraryLoadError(ArcanistError):
    """A library exists but importing it failed."""

    def __init__(self, name: str, location: str, reason: str) -> None:
        self.library_name = name
        self.location = location
        super().__init__(
            f"Failed to load library '{name}' from '{location}': {reason}"
        )


class FailureKind(Enum):
    """Discriminant of a :class:`Failure`.

    USAGE
        Short formatted message; re-raised after printing in trace mode.
    UNEXPECTED
        Summarized with a hint to use ``--trace``; propagated untouched
        in trace mode.
    """

    USAGE = "usage"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class Failure:
    """The outcome of a bootstrap that did not reach a workflow exit code."""

    kind: FailureKind
    message: str
    error: Exception

    @classmethod
    def from_exception(cls, error: Exception) -> "Failure":
        kind = FailureKind.USAGE if isinstance(error, UsageError) else FailureKind.UNEXPECTED
        return cls(kind=kind, message=str(error), error=error)

    @property
    def exit_code(self) -> int:
        return 1
