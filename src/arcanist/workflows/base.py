"""Abstract base class for workflows.

A workflow implements one ``arc`` command. The bootstrap builds it by
name, lets it parse its own arguments, asks which shared resources it
needs, injects those, and finally calls :meth:`Workflow.run` exactly once.
"""
from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, ClassVar

import click

from arcanist.core.errors import UsageError
from arcanist.plugins.registry import PluginRegistry

if TYPE_CHECKING:
    from arcanist.conduit.client import ConduitClient
    from arcanist.configuration import ArcanistConfiguration
    from arcanist.core.working_copy import WorkingCopyIdentity
    from arcanist.repository.base import RepositoryAPI


class Workflow(ABC):
    """One command's execution unit.

    Subclasses declare their arguments as click parameters in ``params``
    and override the ``requires_*`` queries for the resources they use.
    Resources that were not declared stay unavailable and their accessors
    raise ``RuntimeError``.
    """

    summary: ClassVar[str] = ""
    params: ClassVar[Sequence[click.Parameter]] = ()

    def __init__(self) -> None:
        self.command: str | None = None
        self.arguments: dict[str, Any] = {}
        self._configuration: ArcanistConfiguration | None = None
        self._working_copy: WorkingCopyIdentity | None = None
        self._conduit: ConduitClient | None = None
        self._repository_api: RepositoryAPI | None = None
        self._user_name: str | None = None
        self._user_guid: str | None = None

    @classmethod
    def describe(cls) -> str:
        """Full help text: the class docstring, or the summary."""
        return inspect.getdoc(cls) or cls.summary

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def set_configuration(self, configuration: "ArcanistConfiguration") -> None:
        self._configuration = configuration

    def set_command(self, command: str) -> None:
        self.command = command

    def parse_arguments(self, args: Sequence[str]) -> None:
        """Parse the command's arguments into ``self.arguments``.

        Raises
        ------
        UsageError
            If the arguments do not match ``params``.
        """
        name = self.command or type(self).__name__.lower()
        parser = click.Command(name, params=list(self.params), add_help_option=False)
        try:
            ctx = parser.make_context(name, list(args))
        except click.UsageError as exc:
            raise UsageError(exc.format_message()) from exc
        self.arguments = dict(ctx.params)

    # ------------------------------------------------------------------
    # Requirements
    # ------------------------------------------------------------------

    def requires_working_copy(self) -> bool:
        return False

    def requires_conduit(self) -> bool:
        return False

    def requires_authentication(self) -> bool:
        return False

    def requires_repository_api(self) -> bool:
        return False

    # ------------------------------------------------------------------
    # Injected resources
    # ------------------------------------------------------------------

    def set_working_copy(self, working_copy: "WorkingCopyIdentity") -> None:
        self._working_copy = working_copy

    def set_conduit(self, conduit: "ConduitClient") -> None:
        self._conduit = conduit

    def set_repository_api(self, repository_api: "RepositoryAPI") -> None:
        self._repository_api = repository_api

    def set_user_name(self, user_name: str) -> None:
        self._user_name = user_name

    def set_user_guid(self, user_guid: str) -> None:
        self._user_guid = user_guid

    @staticmethod
    def _require(value: Any, what: str, query: str) -> Any:
        if value is None:
            raise RuntimeError(
                f"This workflow has no {what}; it must return True from {query}()."
            )
        return value

    @property
    def configuration(self) -> "ArcanistConfiguration":
        return self._require(self._configuration, "configuration", "set_configuration")

    @property
    def working_copy(self) -> "WorkingCopyIdentity":
        return self._require(self._working_copy, "working copy", "requires_working_copy")

    @property
    def conduit(self) -> "ConduitClient":
        return self._require(self._conduit, "conduit", "requires_conduit")

    @property
    def repository_api(self) -> "RepositoryAPI":
        return self._require(self._repository_api, "repository API", "requires_repository_api")

    @property
    def user_name(self) -> str:
        return self._require(self._user_name, "authenticated user", "requires_authentication")

    @property
    def user_guid(self) -> str:
        return self._require(self._user_guid, "authenticated user", "requires_authentication")

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def will_run_workflow(self) -> None:
        """Hook called after all resources are injected, just before :meth:`run`."""

    @abstractmethod
    def run(self) -> int:
        """Execute the command and return the process exit status."""


workflow_registry: PluginRegistry[Workflow] = PluginRegistry(Workflow, "workflow")
