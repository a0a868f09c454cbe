"""Repository APIs: the version-control abstraction handed to workflows."""
from __future__ import annotations

from arcanist.repository.adapters import GitAPI, MercurialAPI, SubversionAPI
from arcanist.repository.base import (
    RepositoryAPI,
    detect_source_control_system,
    new_api_from_working_copy,
    repository_api_registry,
)

__all__ = [
    "GitAPI",
    "MercurialAPI",
    "RepositoryAPI",
    "SubversionAPI",
    "detect_source_control_system",
    "new_api_from_working_copy",
    "repository_api_registry",
]
