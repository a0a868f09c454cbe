"""Workflows shipped with arcanist."""
from __future__ import annotations

import json
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from arcanist.conduit.client import ConduitClientError
from arcanist.workflows.base import Workflow, workflow_registry

console = Console()
err_console = Console(stderr=True)


@workflow_registry.register("help")
class HelpWorkflow(Workflow):
    """Show the available commands, or the full help of one command.

    Usage: arc help [COMMAND]
    """

    summary = "Show available commands."
    params = (click.Argument(["topic"], required=False),)

    def run(self) -> int:
        topic = self.arguments.get("topic")
        if topic:
            if topic not in workflow_registry:
                err_console.print(f"[red]Error:[/red] No help for unknown command '{escape(topic)}'.")
                return 1
            cls = workflow_registry.get(topic)
            console.print(f"[bold]arc {escape(topic.lower())}[/bold]\n")
            console.print(escape(cls.describe()))
            return 0

        table = Table(title="arc commands", show_header=False, box=None)
        for name, cls in workflow_registry.items():
            table.add_row(f"[bold]{escape(name)}[/bold]", escape(cls.summary))
        console.print(table)
        console.print("\nGlobal options: [bold]--trace[/bold]  show debugging output and full tracebacks")
        return 0


@workflow_registry.register("version")
class VersionWorkflow(Workflow):
    """Show arcanist version information."""

    summary = "Show version information."

    def run(self) -> int:
        from arcanist import __version__

        table = Table(show_header=False, box=None)
        table.add_row("[bold]arcanist[/bold]", f"v{__version__}")
        table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
        table.add_row("Platform", sys.platform)
        console.print(table)
        return 0


@workflow_registry.register("which")
class WhichWorkflow(Workflow):
    """Show the working copy arc would operate on: its project root, the
    detected version control system and the configured Conduit URI.
    """

    summary = "Show the detected working copy and Conduit endpoint."

    def requires_repository_api(self) -> bool:
        return True

    def run(self) -> int:
        table = Table(show_header=False, box=None)
        table.add_row("Project root", escape(str(self.working_copy.project_root)))
        table.add_row("Version control", self.repository_api.source_control_system)
        table.add_row("Conduit URI", escape(self.working_copy.conduit_uri or "(none)"))
        if self.working_copy.project_id:
            table.add_row("Project", escape(str(self.working_copy.project_id)))
        console.print(table)
        return 0


@workflow_registry.register("call-conduit")
class CallConduitWorkflow(Workflow):
    """Call a Conduit method directly.

    Usage: echo '{"key": "value"}' | arc call-conduit METHOD

    Parameters are read from stdin as a JSON object (empty input means no
    parameters). The reply is printed as JSON with ``error``,
    ``errorMessage`` and ``response`` keys.
    """

    summary = "Call a Conduit method with JSON parameters from stdin."
    params = (click.Argument(["method"]),)

    def requires_conduit(self) -> bool:
        return True

    def requires_authentication(self) -> bool:
        return True

    def run(self) -> int:
        method = self.arguments["method"]
        raw = sys.stdin.read().strip()
        try:
            params = json.loads(raw) if raw else {}
        except json.JSONDecodeError as exc:
            err_console.print(f"[red]Error:[/red] Parameters are not valid JSON: {escape(str(exc))}")
            return 1
        if not isinstance(params, dict):
            err_console.print("[red]Error:[/red] Parameters must be a JSON object.")
            return 1

        try:
            response = self.conduit.call_method(method, params).resolve()
            reply = {"error": None, "errorMessage": None, "response": response}
            status = 0
        except ConduitClientError as exc:
            reply = {"error": exc.error_code, "errorMessage": exc.error_info, "response": None}
            status = 1

        click.echo(json.dumps(reply, indent=2, sort_keys=True))
        return status
