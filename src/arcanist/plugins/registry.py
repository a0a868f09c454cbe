"""Plugin registry for arcanist.

Workflows, configurations and repository adapters are looked up by name
rather than by reflection. Each kind of plugin has one registry; code
contributes to it either with the ``@register`` decorator (typically at
import time of a library listed under ``phutil_libraries``) or through
entry-points declared by an installed distribution.

Example
-------
Register a workflow from a project library::

    from arcanist.workflows import Workflow, workflow_registry

    @workflow_registry.register("lint")
    class LintWorkflow(Workflow):
        def run(self) -> int:
            return 0

Instantiate it by name::

    workflow = workflow_registry.create("LINT")

Names are case-insensitive: they are lower-cased on registration and on
lookup.
"""
from __future__ import annotations

import importlib.metadata
import logging
from abc import ABC
from collections.abc import Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=ABC)


class PluginNotFoundError(KeyError):
    """Raised when a requested plugin name is not in the registry."""

    def __init__(self, name: str, registry_name: str) -> None:
        self.plugin_name = name
        self.registry_name = registry_name
        super().__init__(
            f"No {registry_name} named {name!r} is registered. "
            "Check that the library declaring it is listed in "
            "'phutil_libraries' or installed as a package."
        )

    def __str__(self) -> str:
        return str(self.args[0])


class PluginAlreadyRegisteredError(ValueError):
    """Raised when attempting to register a name that already exists."""

    def __init__(self, name: str, registry_name: str) -> None:
        self.plugin_name = name
        self.registry_name = registry_name
        super().__init__(
            f"A {registry_name} named {name!r} is already registered. "
            "Use a unique name or deregister the existing entry first."
        )


def _normalize(name: str) -> str:
    return name.strip().lower()


class PluginRegistry(Generic[T]):
    """Name-keyed registry of plugin classes sharing one abstract base.

    Parameters
    ----------
    base_class:
        The abstract base class all plugins must subclass.
    name:
        A human-readable name for the kind of plugin (used in error
        messages), e.g. ``"workflow"``.
    """

    def __init__(self, base_class: type[T], name: str) -> None:
        self._base_class = base_class
        self._name = name
        self._plugins: dict[str, type[T]] = {}

    @property
    def name(self) -> str:
        return self._name

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, name: str) -> Callable[[type[T]], type[T]]:
        """Return a class decorator that registers the decorated class.

        Raises
        ------
        PluginAlreadyRegisteredError
            If ``name`` is already in use in this registry.
        TypeError
            If the decorated class does not subclass ``base_class``.
        """

        def decorator(cls: type[T]) -> type[T]:
            self.register_class(name, cls)
            return cls

        return decorator

    def register_class(self, name: str, cls: type[T]) -> None:
        """Register ``cls`` under ``name`` without decorator syntax."""
        key = _normalize(name)
        if key in self._plugins:
            raise PluginAlreadyRegisteredError(key, self._name)
        if not (isinstance(cls, type) and issubclass(cls, self._base_class)):
            raise TypeError(
                f"Cannot register {cls!r} as {self._name} {key!r}: "
                f"it must be a subclass of {self._base_class.__name__}."
            )
        self._plugins[key] = cls
        logger.debug(
            "Registered %s %r -> %s", self._name, key, cls.__qualname__
        )

    def deregister(self, name: str) -> None:
        """Remove a plugin from the registry.

        Raises
        ------
        PluginNotFoundError
            If ``name`` is not currently registered.
        """
        key = _normalize(name)
        if key not in self._plugins:
            raise PluginNotFoundError(key, self._name)
        del self._plugins[key]
        logger.debug("Deregistered %s %r", self._name, key)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> type[T]:
        """Return the class registered under ``name``.

        Raises
        ------
        PluginNotFoundError
            If no plugin is registered under ``name``.
        """
        try:
            return self._plugins[_normalize(name)]
        except KeyError:
            raise PluginNotFoundError(_normalize(name), self._name) from None

    def create(self, name: str, *args: Any, **kwargs: Any) -> T:
        """Instantiate the plugin registered under ``name``."""
        return self.get(name)(*args, **kwargs)

    def list_plugins(self) -> list[str]:
        """Return registered names in alphabetical order."""
        return sorted(self._plugins)

    def items(self) -> list[tuple[str, type[T]]]:
        """Return ``(name, class)`` pairs in alphabetical order."""
        return sorted(self._plugins.items())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _normalize(name) in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def __repr__(self) -> str:
        return (
            f"PluginRegistry(name={self._name!r}, "
            f"base_class={self._base_class.__name__}, "
            f"plugins={self.list_plugins()})"
        )

    # ------------------------------------------------------------------
    # Entry-point loading
    # ------------------------------------------------------------------

    def load_entrypoints(self, group: str) -> None:
        """Register plugins declared as package entry-points in ``group``.

        Names that are already registered are skipped, so repeated calls
        are idempotent. A plugin that fails to import or does not subclass
        the base class is logged and skipped.

        Example
        -------
        In a downstream package's ``pyproject.toml``::

            [project.entry-points."arcanist.workflows"]
            lint = "my_package.workflows:LintWorkflow"
        """
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self:
                logger.debug(
                    "Entry-point %r already registered as %s; skipping.",
                    ep.name,
                    self._name,
                )
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception(
                    "Failed to load entry-point %r from group %r; skipping.",
                    ep.name,
                    group,
                )
                continue
            try:
                self.register_class(ep.name, cls)
            except (PluginAlreadyRegisteredError, TypeError):
                logger.warning(
                    "Entry-point %r loaded but could not be registered "
                    "as %s; skipping.",
                    ep.name,
                    self._name,
                )
