"""Dispatch of one ``arc`` invocation to its workflow.

The sequence is: strip global flags, resolve the working copy, load
project libraries, pick the configuration, build and parse the workflow,
provide the resources it needs (working copy, conduit, repository API,
identity, in that order) and run it. :func:`run` is the only place that
catches errors; everything it calls raises.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import ExitStack
from typing import Any

from arcanist.conduit.session import authenticate, open_session
from arcanist.configuration import ArcanistConfiguration, new_configuration
from arcanist.core.arguments import Invocation, preprocess_arguments
from arcanist.core.context import RunContext
from arcanist.core.errors import Failure, UnknownCommandError
from arcanist.core.libraries import load_libraries
from arcanist.core.reporter import report_failure
from arcanist.core.requirements import resolve_requirements
from arcanist.core.working_copy import WorkingCopyIdentity
from arcanist.repository import RepositoryAPI, new_api_from_working_copy, repository_api_registry
from arcanist.workflows import Workflow

logger = logging.getLogger(__name__)

REPOSITORY_API_ENTRYPOINTS = "arcanist.repository_apis"


class Bootstrap:
    """Provision and run the workflow for one invocation."""

    def __init__(self, context: RunContext, invocation: Invocation) -> None:
        self.context = context
        self.invocation = invocation
        self._repository_api: RepositoryAPI | None = None

    def repository_api(self, working_copy: WorkingCopyIdentity) -> RepositoryAPI:
        if self._repository_api is None:
            repository_api_registry.load_entrypoints(REPOSITORY_API_ENTRYPOINTS)
            self._repository_api = new_api_from_working_copy(working_copy)
        return self._repository_api

    def build_workflow(self, configuration: ArcanistConfiguration, command: str) -> Workflow:
        workflow = configuration.build_workflow(command)
        if workflow is None:
            raise UnknownCommandError(command)
        workflow.set_configuration(configuration)
        workflow.set_command(command)
        workflow.parse_arguments(self.invocation.command_arguments)
        return workflow

    def execute(self) -> int:
        command = self.invocation.command.lower()

        working_copy = WorkingCopyIdentity.new_from_path(self.context.cwd)
        load_libraries(working_copy, self.context)
        configuration = new_configuration(working_copy)
        workflow = self.build_workflow(configuration, command)

        needs = resolve_requirements(workflow)
        logger.debug("Workflow %r needs %s", workflow.command, needs)

        with ExitStack() as stack:
            conduit = None
            if needs.working_copy:
                workflow.set_working_copy(working_copy)
            if needs.conduit:
                conduit = stack.enter_context(open_session(self.context, working_copy))
                workflow.set_conduit(conduit)
            if needs.repository_api:
                workflow.set_repository_api(self.repository_api(working_copy))
            if needs.authentication:
                identity = authenticate(conduit, self.context.user)
                workflow.set_user_guid(identity.user_guid)
                workflow.set_user_name(identity.user_name)

            return run_workflow(configuration, workflow)


def run_workflow(configuration: ArcanistConfiguration, workflow: Workflow) -> int:
    """Run ``workflow`` between the lifecycle hooks and return its status.

    The configuration's post-run hook only fires on a zero status.
    """
    command = workflow.command or ""
    configuration.will_run_workflow(command, workflow)
    workflow.will_run_workflow()
    status = workflow.run()
    if status == 0:
        configuration.did_run_workflow(command, workflow)
    return status


def run(argv: Sequence[str], **context_overrides: Any) -> int:
    """Run one invocation and return its exit status.

    ``argv`` is the full command line, program name first. Keyword
    arguments override :class:`RunContext` fields (``cwd``, ``user``,
    ``transport``...).

    In trace mode failures propagate after being reported.
    """
    invocation = preprocess_arguments(argv[1:])
    context = RunContext.from_argv(argv, trace=invocation.trace, **context_overrides)
    try:
        return Bootstrap(context, invocation).execute()
    except Exception as exc:
        return report_failure(Failure.from_exception(exc), context)
