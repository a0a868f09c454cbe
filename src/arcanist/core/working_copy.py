"""Working copy discovery and configuration.

The project root is the nearest ancestor of the starting directory that
contains an ``.arcconfig`` file. Its settings are merged with an optional
``.arcconfig.local`` next to it, local values winning.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from arcanist.core.errors import UsageError

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILE = ".arcconfig"
LOCAL_CONFIG_FILE = ".arcconfig.local"


def _read_config(path: Path) -> dict[str, Any]:
    # .arcconfig is JSON, which safe_load accepts as YAML
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise UsageError(f"Unable to parse '{path}': {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise UsageError(f"Expected '{path}' to contain a mapping of settings.")
    return data


def find_project_root(start: Path) -> Path | None:
    """Return the nearest directory at or above ``start`` with an ``.arcconfig``."""
    start = start.resolve()
    for candidate in (start, *start.parents):
        if (candidate / PROJECT_CONFIG_FILE).is_file():
            return candidate
    return None


@dataclass(frozen=True)
class WorkingCopyIdentity:
    """The resolved project root and its merged configuration."""

    project_root: Path | None
    config: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "config", MappingProxyType(dict(self.config)))

    @classmethod
    def new_from_path(cls, path: Path | str) -> "WorkingCopyIdentity":
        root = find_project_root(Path(path))
        if root is None:
            logger.debug("No %s found above %s", PROJECT_CONFIG_FILE, path)
            return cls(project_root=None)

        config = _read_config(root / PROJECT_CONFIG_FILE)
        local = root / LOCAL_CONFIG_FILE
        if local.is_file():
            config.update(_read_config(local))
        logger.debug("Working copy root %s with keys %s", root, sorted(config))
        return cls(project_root=root, config=config)

    def get_config(self, key: str, default: Any = None) -> Any:
        """Return the setting for ``key``, or ``default`` when unset."""
        return self.config.get(key, default)

    @property
    def conduit_uri(self) -> str | None:
        return self.get_config("conduit_uri") or None

    @property
    def project_id(self) -> str | None:
        return self.get_config("project_id")
