"""Version-control abstraction for the working copy.

Adapters register in :data:`repository_api_registry` and are selected by
the marker directory (``.svn``, ``.hg``, ``.git``) present in the
project root.
"""
from __future__ import annotations

import logging
import subprocess
from abc import ABC
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

from arcanist.core.errors import UsageError
from arcanist.plugins.registry import PluginRegistry

if TYPE_CHECKING:
    from arcanist.core.working_copy import WorkingCopyIdentity

logger = logging.getLogger(__name__)

DETECTION_ORDER = ("svn", "hg", "git")


class RepositoryAPI(ABC):
    """Handle on the version-control system managing the project root.

    Subclasses set ``source_control_system`` (the registry name),
    ``marker`` (the directory that identifies a working copy) and
    ``binary`` (the command-line client).
    """

    source_control_system: ClassVar[str]
    marker: ClassVar[str]
    binary: ClassVar[str]

    def __init__(self, path: Path, working_copy: "WorkingCopyIdentity | None" = None) -> None:
        self.path = path
        self.working_copy = working_copy

    def execute(self, *args: str) -> str:
        """Run the VCS client in the project root and return its stdout.

        Raises
        ------
        subprocess.CalledProcessError
            If the command exits non-zero.
        """
        command = [self.binary, *args]
        logger.debug("Executing %s in %s", " ".join(command), self.path)
        completed = subprocess.run(
            command, cwd=self.path, capture_output=True, text=True, check=True
        )
        return completed.stdout

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={str(self.path)!r})"


repository_api_registry: PluginRegistry[RepositoryAPI] = PluginRegistry(
    RepositoryAPI, "repository API"
)


def detect_source_control_system(root: Path) -> str | None:
    """Return the registry name of the VCS managing ``root``, if any."""
    names = list(DETECTION_ORDER)
    names += [n for n in repository_api_registry.list_plugins() if n not in names]
    for name in names:
        if name not in repository_api_registry:
            continue
        if (root / repository_api_registry.get(name).marker).exists():
            return name
    return None


def new_api_from_working_copy(working_copy: "WorkingCopyIdentity") -> RepositoryAPI:
    """Construct the repository API for ``working_copy``.

    Raises
    ------
    UsageError
        If there is no project root, or no supported VCS manages it.
    """
    root = working_copy.project_root
    if root is None:
        raise UsageError(
            "There is no readable '.arcconfig' file in the working directory "
            "or any parent directory. Create an '.arcconfig' file to configure "
            "arc."
        )
    name = detect_source_control_system(root)
    if name is None:
        supported = ", ".join(repository_api_registry.list_plugins())
        raise UsageError(
            "The current working directory is not part of a working copy for "
            f"a supported version control system ({supported})."
        )
    logger.debug("Detected %s working copy at %s", name, root)
    return repository_api_registry.create(name, root, working_copy)
