"""arcanist — command-line bootstrap that dispatches to pluggable workflows.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
Register a workflow and run it the way the ``arc`` console script does::

    import arcanist
    from arcanist import Workflow, workflow_registry

    @workflow_registry.register("hello")
    class HelloWorkflow(Workflow):
        summary = "Say hello."

        def run(self) -> int:
            print("hello")
            return 0

    status = arcanist.run(["arc", "hello"])

Workflows that need the Conduit API, an authenticated user, or the
repository API declare it via ``requires_conduit``,
``requires_authentication`` and ``requires_repository_api``; the
bootstrap provides them before ``run`` is called.
"""
from __future__ import annotations

__version__: str = "0.1.0"

from arcanist.configuration import ArcanistConfiguration, configuration_registry
from arcanist.core.bootstrap import run
from arcanist.core.errors import UsageError
from arcanist.workflows import Workflow, workflow_registry

__all__ = [
    "__version__",
    "ArcanistConfiguration",
    "UsageError",
    "Workflow",
    "configuration_registry",
    "run",
    "workflow_registry",
]
