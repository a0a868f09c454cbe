"""Escalation of a workflow's declared resource needs."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from arcanist.workflows.base import Workflow


@dataclass(frozen=True)
class Requirements:
    """Which shared resources a workflow gets before it runs."""

    working_copy: bool = False
    conduit: bool = False
    authentication: bool = False
    repository_api: bool = False

    @classmethod
    def declared_by(cls, workflow: "Workflow") -> "Requirements":
        return cls(
            working_copy=workflow.requires_working_copy(),
            conduit=workflow.requires_conduit(),
            authentication=workflow.requires_authentication(),
            repository_api=workflow.requires_repository_api(),
        )

    def escalate(self) -> "Requirements":
        """Add the needs implied by the declared ones.

        Authentication needs a conduit; a conduit or a repository API
        needs the working copy. Nothing implies authentication or a
        repository API.
        """
        conduit = self.conduit or self.authentication
        working_copy = self.working_copy or conduit or self.repository_api
        return Requirements(
            working_copy=working_copy,
            conduit=conduit,
            authentication=self.authentication,
            repository_api=self.repository_api,
        )


def resolve_requirements(workflow: "Workflow") -> Requirements:
    """Return the escalated requirements of an argument-parsed workflow."""
    return Requirements.declared_by(workflow).escalate()
