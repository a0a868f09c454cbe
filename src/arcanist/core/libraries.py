"""Loading of project libraries declared under ``phutil_libraries``.

A library is a Python package directory (containing ``__init__.py``) or
a single ``.py`` file. Importing it is expected to register workflows,
configurations or repository adapters with the plugin registries.
Libraries load in declaration order and each resolved path is imported
at most once per process.
"""
from __future__ import annotations

import importlib.util
import logging
import re
import sys
from collections.abc import Mapping
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING

from rich.markup import escape

from arcanist.core.errors import LibraryLoadError, LibraryNotFoundError, UsageError

if TYPE_CHECKING:
    from arcanist.core.context import RunContext
    from arcanist.core.working_copy import WorkingCopyIdentity

logger = logging.getLogger(__name__)

LIBRARIES_KEY = "phutil_libraries"

_loaded: dict[Path, ModuleType] = {}


def _module_name(name: str, path: Path) -> str:
    slug = re.sub(r"\W", "_", name) or "library"
    return f"arcanist_library_{slug}_{abs(hash(path)):x}"


def resolve_location(location: str, root: Path) -> Path:
    """Resolve ``location`` against ``root`` unless it is absolute."""
    path = Path(location).expanduser()
    if not path.is_absolute():
        path = root / path
    return path.resolve()


def load_library(name: str, path: Path) -> ModuleType:
    """Import the library at ``path``, returning the cached module on repeat calls.

    Raises
    ------
    LibraryNotFoundError
        If ``path`` does not exist or is not an importable file or package.
    LibraryLoadError
        If executing the library raises.
    """
    if path in _loaded:
        logger.debug("Library %r at %s already loaded", name, path)
        return _loaded[path]

    if path.is_dir():
        init = path / "__init__.py"
        if not init.is_file():
            raise LibraryNotFoundError(name, str(path))
        spec = importlib.util.spec_from_file_location(
            _module_name(name, path), init, submodule_search_locations=[str(path)]
        )
    elif path.is_file():
        spec = importlib.util.spec_from_file_location(_module_name(name, path), path)
    else:
        raise LibraryNotFoundError(name, str(path))

    if spec is None or spec.loader is None:
        raise LibraryLoadError(name, str(path), "no import loader for this location")

    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        del sys.modules[spec.name]
        raise LibraryLoadError(name, str(path), str(exc) or type(exc).__name__) from exc

    _loaded[path] = module
    logger.debug("Loaded library %r from %s as %s", name, path, spec.name)
    return module


def load_libraries(working_copy: "WorkingCopyIdentity", context: "RunContext") -> list[ModuleType]:
    """Load every library listed in the working copy's ``phutil_libraries``."""
    libraries = working_copy.get_config(LIBRARIES_KEY)
    if not libraries:
        return []
    if not isinstance(libraries, Mapping):
        raise UsageError(
            f"'{LIBRARIES_KEY}' must map library names to locations."
        )

    root = working_copy.project_root or context.cwd
    modules = []
    for name, location in libraries.items():
        if context.trace:
            context.err_console.print(
                escape(f"Loading phutil library '{name}' from '{location}'..."),
                soft_wrap=True,
            )
        modules.append(load_library(str(name), resolve_location(str(location), root)))
    return modules
