"""End-to-end tests: argv → bootstrap → workflow → exit status.

These tests drive :func:`arcanist.run` (and the ``main`` console entry
point) against temporary projects and a fake Conduit transport, checking
resource provisioning, lifecycle hooks and the exit-code contract.
"""
from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import click
import pytest

import arcanist
from arcanist.cli.main import main
from arcanist.configuration import ArcanistConfiguration, configuration_registry
from arcanist.core.arguments import preprocess_arguments
from arcanist.core.bootstrap import Bootstrap
from arcanist.core.context import RunContext
from arcanist.core.errors import UnknownCommandError, UsageError
from arcanist.core.working_copy import WorkingCopyIdentity
from arcanist.workflows import Workflow, workflow_registry
from tests.conftest import FakeConduit

URI = "https://phabricator.example.com/api/"

Register = Callable[[str, type[Workflow]], type[Workflow]]


class RecordingWorkflow(Workflow):
    """Records what the bootstrap did to it."""

    status = 0
    needs: dict[str, bool] = {}
    params = (click.Argument(["rest"], nargs=-1),)

    def __init__(self) -> None:
        super().__init__()
        self.events: list[str] = []
        RecordingWorkflow.last = self

    def requires_working_copy(self) -> bool:
        return self.needs.get("working_copy", False)

    def requires_conduit(self) -> bool:
        return self.needs.get("conduit", False)

    def requires_authentication(self) -> bool:
        return self.needs.get("authentication", False)

    def requires_repository_api(self) -> bool:
        return self.needs.get("repository_api", False)

    def set_working_copy(self, working_copy: Any) -> None:
        self.events.append("working_copy")
        super().set_working_copy(working_copy)

    def set_conduit(self, conduit: Any) -> None:
        self.events.append("conduit")
        super().set_conduit(conduit)

    def set_repository_api(self, repository_api: Any) -> None:
        self.events.append("repository_api")
        super().set_repository_api(repository_api)

    def set_user_guid(self, user_guid: str) -> None:
        self.events.append("user")
        super().set_user_guid(user_guid)

    def will_run_workflow(self) -> None:
        self.events.append("workflow.will_run")

    def run(self) -> int:
        self.events.append("run")
        return self.status


def _workflow_class(status: int = 0, **needs: bool) -> type[RecordingWorkflow]:
    return type("Recording", (RecordingWorkflow,), {"status": status, "needs": needs})


class RecordingConfiguration(ArcanistConfiguration):
    events: list[str] = []

    def will_run_workflow(self, command: str, workflow: Workflow) -> None:
        self.events.append(f"config.will_run:{command}")
        workflow.events.append("config.will_run")  # type: ignore[attr-defined]

    def did_run_workflow(self, command: str, workflow: Workflow) -> None:
        self.events.append(f"config.did_run:{command}")


@pytest.fixture()
def recording_configuration() -> Iterator[type[RecordingConfiguration]]:
    RecordingConfiguration.events = []
    configuration_registry.register_class("recording", RecordingConfiguration)
    yield RecordingConfiguration
    configuration_registry.deregister("recording")


def _run(argv: list[str], cwd: Path, fake: FakeConduit | None = None, **overrides: Any) -> int:
    return arcanist.run(
        argv,
        cwd=cwd,
        user="alice",
        hostname="devbox",
        transport=(fake or FakeConduit()).transport,
        **overrides,
    )


# ===========================================================================
# Command resolution
# ===========================================================================


class TestCommandResolution:
    def test_no_command_is_usage_error(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["arc"], tmp_path) == 1
        assert "Usage Exception: No command provided. Try 'arc help'." in capsys.readouterr().err

    def test_only_trace_flag_is_usage_error(self, tmp_path: Path) -> None:
        with pytest.raises(UsageError, match="No command provided"):
            _run(["arc", "--trace"], tmp_path)

    def test_unknown_command(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["arc", "Frobnicate"], tmp_path) == 1
        assert "Usage Exception: Unknown command 'frobnicate'. Try 'arc help'." in capsys.readouterr().err

    @pytest.mark.parametrize("typed", ["status", "Status", "STATUS"])
    def test_lookup_is_case_insensitive(self, tmp_path: Path, register_workflow: Register, typed: str) -> None:
        register_workflow("status", _workflow_class())
        assert _run(["arc", typed], tmp_path) == 0
        assert RecordingWorkflow.last.command == "status"

    def test_help_runs_without_project(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["arc", "help"], tmp_path) == 0
        assert "version" in capsys.readouterr().out

    def test_bad_workflow_arguments_are_usage_error(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["arc", "version", "--bogus"], tmp_path) == 1
        assert "Usage Exception:" in capsys.readouterr().err

    def test_separator_reaches_workflow(self, tmp_path: Path, register_workflow: Register) -> None:
        register_workflow("echo", _workflow_class())
        assert _run(["arc", "echo", "--", "--trace"], tmp_path) == 0
        assert RecordingWorkflow.last.arguments == {"rest": ("--trace",)}


# ===========================================================================
# Exit status and lifecycle hooks
# ===========================================================================


class TestExecution:
    def test_hooks_run_in_order_on_success(
        self,
        make_project: Callable[..., Path],
        register_workflow: Register,
        recording_configuration: type[RecordingConfiguration],
    ) -> None:
        register_workflow("ok", _workflow_class(status=0))
        root = make_project({"arcanist_configuration": "recording"})
        assert _run(["arc", "ok"], root) == 0
        assert RecordingWorkflow.last.events == ["config.will_run", "workflow.will_run", "run"]
        assert recording_configuration.events == ["config.will_run:ok", "config.did_run:ok"]

    def test_nonzero_status_is_exit_code_and_skips_post_hook(
        self,
        make_project: Callable[..., Path],
        register_workflow: Register,
        recording_configuration: type[RecordingConfiguration],
    ) -> None:
        register_workflow("fails", _workflow_class(status=3))
        root = make_project({"arcanist_configuration": "recording"})
        assert _run(["arc", "fails"], root) == 3
        assert recording_configuration.events == ["config.will_run:fails"]

    def test_unexpected_error_in_run(
        self, tmp_path: Path, register_workflow: Register, capsys: pytest.CaptureFixture[str]
    ) -> None:
        class Exploding(Workflow):
            def run(self) -> int:
                raise RuntimeError("kaboom")

        register_workflow("explode", Exploding)
        assert _run(["arc", "explode"], tmp_path) == 1
        err = capsys.readouterr().err
        assert "kaboom" in err
        assert "(Run with --trace for a full exception trace.)" in err

    def test_unexpected_error_propagates_in_trace_mode(
        self, tmp_path: Path, register_workflow: Register
    ) -> None:
        class Exploding(Workflow):
            def run(self) -> int:
                raise RuntimeError("kaboom")

        register_workflow("explode", Exploding)
        with pytest.raises(RuntimeError, match="kaboom"):
            _run(["arc", "--trace", "explode"], tmp_path)

    def test_usage_error_reraised_in_trace_mode(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(UnknownCommandError):
            _run(["arc", "frobnicate", "--trace"], tmp_path)
        assert "Usage Exception: Unknown command 'frobnicate'" in capsys.readouterr().err

    def test_unknown_configuration_is_unexpected(
        self, make_project: Callable[..., Path], capsys: pytest.CaptureFixture[str]
    ) -> None:
        root = make_project({"arcanist_configuration": "NoSuchConfiguration"})
        assert _run(["arc", "help"], root) == 1
        err = capsys.readouterr().err
        assert "nosuchconfiguration" in err
        assert "Usage Exception" not in err


# ===========================================================================
# Resource provisioning
# ===========================================================================


class TestProvisioning:
    def test_no_requirements_injects_nothing(self, tmp_path: Path, register_workflow: Register) -> None:
        register_workflow("bare", _workflow_class())
        assert _run(["arc", "bare"], tmp_path) == 0
        assert RecordingWorkflow.last.events == ["workflow.will_run", "run"]

    def test_working_copy_is_injected(
        self, make_project: Callable[..., Path], register_workflow: Register
    ) -> None:
        register_workflow("wc", _workflow_class(working_copy=True))
        root = make_project({"project_id": "demo"})
        assert _run(["arc", "wc"], root) == 0
        assert RecordingWorkflow.last.working_copy.project_id == "demo"

    def test_authentication_alone_escalates(
        self, make_project: Callable[..., Path], register_workflow: Register
    ) -> None:
        register_workflow("whoami", _workflow_class(authentication=True))
        fake = FakeConduit({"user.find": {"alice": "PHID-1"}})
        root = make_project({"conduit_uri": URI})
        assert _run(["arc", "whoami"], root, fake) == 0

        workflow = RecordingWorkflow.last
        assert workflow.events[:3] == ["working_copy", "conduit", "user"]
        assert workflow.user_name == "alice"
        assert workflow.user_guid == "PHID-1"
        assert workflow.conduit.connection_id == 1234
        assert [name for name, _ in fake.calls] == ["conduit.connect", "user.find"]
        assert fake.params_for("user.find") == {"aliases": ["alice"], "__conduit__": {"connectionID": 1234}}

    def test_connect_handshake_parameters(
        self, make_project: Callable[..., Path], register_workflow: Register
    ) -> None:
        register_workflow("status", _workflow_class(conduit=True))
        fake = FakeConduit()
        root = make_project({"conduit_uri": URI})
        assert _run(["arc", "status"], root, fake) == 0
        params = fake.params_for("conduit.connect")
        assert params["client"] == "arc"
        assert params["clientVersion"] == 2
        assert "devbox" in params["clientDescription"]
        assert "arc status" in params["clientDescription"]
        assert params["user"] == "alice"

    def test_acquisition_order(
        self, make_project: Callable[..., Path], register_workflow: Register
    ) -> None:
        register_workflow("everything", _workflow_class(authentication=True, repository_api=True))
        fake = FakeConduit({"user.find": {"alice": "PHID-1"}})
        root = make_project({"conduit_uri": URI}, vcs="git")
        assert _run(["arc", "everything"], root, fake) == 0
        assert RecordingWorkflow.last.events == [
            "working_copy",
            "conduit",
            "repository_api",
            "user",
            "workflow.will_run",
            "run",
        ]
        assert RecordingWorkflow.last.repository_api.source_control_system == "git"

    def test_repository_api_without_conduit(
        self, make_project: Callable[..., Path], register_workflow: Register
    ) -> None:
        register_workflow("repo", _workflow_class(repository_api=True))
        fake = FakeConduit()
        root = make_project({}, vcs="hg")
        assert _run(["arc", "repo"], root, fake) == 0
        assert RecordingWorkflow.last.events[:2] == ["working_copy", "repository_api"]
        assert fake.calls == []

    def test_missing_conduit_uri_never_runs(
        self, make_project: Callable[..., Path], register_workflow: Register, capsys: pytest.CaptureFixture[str]
    ) -> None:
        register_workflow("needs-conduit", _workflow_class(conduit=True))
        root = make_project({})
        assert _run(["arc", "needs-conduit"], root) == 1
        assert "run" not in RecordingWorkflow.last.events
        assert "No Conduit URI" in capsys.readouterr().err

    def test_unrecognized_user_never_runs(
        self, make_project: Callable[..., Path], register_workflow: Register, capsys: pytest.CaptureFixture[str]
    ) -> None:
        register_workflow("whoami", _workflow_class(authentication=True))
        fake = FakeConduit({"user.find": {}})
        root = make_project({"conduit_uri": URI})
        assert _run(["arc", "whoami"], root, fake) == 1
        assert "run" not in RecordingWorkflow.last.events
        assert "Username 'alice' is not recognized." in capsys.readouterr().err

    def test_repository_api_is_built_once(self, make_project: Callable[..., Path]) -> None:
        root = make_project({}, vcs="git")
        context = RunContext(argv=("arc", "which"), cwd=root, user="alice", hostname="devbox")
        bootstrap = Bootstrap(context, preprocess_arguments(["which"]))
        identity = WorkingCopyIdentity.new_from_path(root)
        with patch(
            "arcanist.core.bootstrap.new_api_from_working_copy",
            wraps=arcanist.core.bootstrap.new_api_from_working_copy,
        ) as factory:
            first = bootstrap.repository_api(identity)
            second = bootstrap.repository_api(identity)
        assert first is second
        factory.assert_called_once()

    def test_which_end_to_end(
        self, make_project: Callable[..., Path], capsys: pytest.CaptureFixture[str]
    ) -> None:
        root = make_project({"conduit_uri": URI}, vcs="svn")
        assert _run(["arc", "which"], root) == 0
        assert "svn" in capsys.readouterr().out

    def test_call_conduit_end_to_end(
        self,
        make_project: Callable[..., Path],
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        import io

        fake = FakeConduit({"user.find": {"alice": "PHID-1"}, "conduit.ping": "pong"})
        root = make_project({"conduit_uri": URI})
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        assert _run(["arc", "call-conduit", "conduit.ping"], root, fake) == 0
        assert json.loads(capsys.readouterr().out)["response"] == "pong"


# ===========================================================================
# Project libraries
# ===========================================================================

_LIBRARY_SOURCE = '''
from arcanist import ArcanistConfiguration, Workflow, configuration_registry, workflow_registry


@workflow_registry.register("{command}")
class LibraryWorkflow(Workflow):
    summary = "Provided by a project library."

    def run(self) -> int:
        return 7


@configuration_registry.register("{configuration}")
class LibraryConfiguration(ArcanistConfiguration):
    pass
'''


@pytest.fixture()
def project_library(make_project: Callable[..., Path]) -> Iterator[Path]:
    root = make_project(
        {
            "phutil_libraries": {"extras": "support/extras"},
            "arcanist_configuration": "library-configuration",
        }
    )
    package = root / "support" / "extras"
    package.mkdir(parents=True)
    (package / "__init__.py").write_text(
        _LIBRARY_SOURCE.format(command="library-command", configuration="library-configuration"),
        encoding="utf-8",
    )
    yield root
    for registry, name in (
        (workflow_registry, "library-command"),
        (configuration_registry, "library-configuration"),
    ):
        if name in registry:
            registry.deregister(name)


class TestProjectLibraries:
    def test_library_workflow_and_configuration(self, project_library: Path) -> None:
        assert _run(["arc", "library-command"], project_library) == 7

    def test_second_invocation_does_not_reload(self, project_library: Path) -> None:
        assert _run(["arc", "library-command"], project_library) == 7
        assert _run(["arc", "library-command"], project_library) == 7

    def test_trace_announces_library(
        self, project_library: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["arc", "--trace", "library-command"], project_library) == 7
        assert "Loading phutil library 'extras' from 'support/extras'..." in capsys.readouterr().err

    def test_missing_library_is_usage_error(
        self, make_project: Callable[..., Path], capsys: pytest.CaptureFixture[str]
    ) -> None:
        root = make_project({"phutil_libraries": {"gone": "does/not/exist"}})
        assert _run(["arc", "help"], root) == 1
        assert "Usage Exception: Library 'gone'" in capsys.readouterr().err


# ===========================================================================
# Console entry point
# ===========================================================================


class TestMain:
    def test_exits_with_workflow_status(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, register_workflow: Register
    ) -> None:
        register_workflow("three", _workflow_class(status=3))
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as exc_info:
            main(["arc", "three"])
        assert exc_info.value.code == 3

    def test_missing_command_exits_one(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as exc_info:
            main(["arc"])
        assert exc_info.value.code == 1

    def test_help_exits_zero(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as exc_info:
            main(["arc", "help"])
        assert exc_info.value.code == 0
