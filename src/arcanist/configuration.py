"""The active command set and its lifecycle hooks.

A project can replace :class:`ArcanistConfiguration` by registering a
subclass in :data:`configuration_registry` (usually from a library in
``phutil_libraries``) and naming it under ``arcanist_configuration``.
"""
from __future__ import annotations

import logging
from abc import ABC
from typing import TYPE_CHECKING

from arcanist.plugins.registry import PluginRegistry
from arcanist.workflows import Workflow, workflow_registry

if TYPE_CHECKING:
    from arcanist.core.working_copy import WorkingCopyIdentity

logger = logging.getLogger(__name__)

CONFIGURATION_KEY = "arcanist_configuration"
CONFIGURATION_ENTRYPOINTS = "arcanist.configurations"
WORKFLOW_ENTRYPOINTS = "arcanist.workflows"
DEFAULT_CONFIGURATION = "default"


class ArcanistConfiguration(ABC):
    """Builds workflows by command name.

    Subclasses may override :meth:`build_workflow` to add, rename or hide
    commands, and the ``*_run_workflow`` hooks to act around execution.
    """

    def build_workflow(self, command: str) -> Workflow | None:
        """Return a new workflow for ``command``, or ``None`` if unknown."""
        if command not in workflow_registry:
            return None
        return workflow_registry.create(command)

    def will_run_workflow(self, command: str, workflow: Workflow) -> None:
        logger.debug("Running workflow %r (%s)", command, type(workflow).__name__)

    def did_run_workflow(self, command: str, workflow: Workflow) -> None:
        logger.debug("Workflow %r completed", command)


configuration_registry: PluginRegistry[ArcanistConfiguration] = PluginRegistry(
    ArcanistConfiguration, "configuration"
)
configuration_registry.register_class(DEFAULT_CONFIGURATION, ArcanistConfiguration)


def new_configuration(working_copy: "WorkingCopyIdentity") -> ArcanistConfiguration:
    """Instantiate the configuration selected by the working copy.

    Raises
    ------
    PluginNotFoundError
        If ``arcanist_configuration`` names a configuration that no loaded
        library or installed package registered.
    """
    workflow_registry.load_entrypoints(WORKFLOW_ENTRYPOINTS)
    configuration_registry.load_entrypoints(CONFIGURATION_ENTRYPOINTS)

    name = working_copy.get_config(CONFIGURATION_KEY) or DEFAULT_CONFIGURATION
    configuration = configuration_registry.create(name)
    logger.debug("Using configuration %r (%s)", name, type(configuration).__name__)
    return configuration
