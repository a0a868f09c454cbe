"""Plugin subsystem for arcanist.

Workflows, configurations and repository adapters are resolved by name
through :class:`PluginRegistry` instances. Installed packages contribute
plugins with entry-points in the ``arcanist.workflows``,
``arcanist.configurations`` and ``arcanist.repository_apis`` groups.

Example
-------
.. code-block:: toml

    [project.entry-points."arcanist.workflows"]
    lint = "my_package.workflows:LintWorkflow"
"""
from __future__ import annotations

from arcanist.plugins.registry import (
    PluginAlreadyRegisteredError,
    PluginNotFoundError,
    PluginRegistry,
)

__all__ = ["PluginAlreadyRegisteredError", "PluginNotFoundError", "PluginRegistry"]
