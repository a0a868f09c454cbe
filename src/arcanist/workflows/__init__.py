"""Workflows: one class per ``arc`` command.

Importing this package registers the built-in workflows.
"""
from __future__ import annotations

from arcanist.workflows.base import Workflow, workflow_registry
from arcanist.workflows.builtin import (
    CallConduitWorkflow,
    HelpWorkflow,
    VersionWorkflow,
    WhichWorkflow,
)

__all__ = [
    "CallConduitWorkflow",
    "HelpWorkflow",
    "VersionWorkflow",
    "WhichWorkflow",
    "Workflow",
    "workflow_registry",
]
