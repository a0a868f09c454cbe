"""Shared test fixtures for arcanist.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

import json
import urllib.parse
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest

from arcanist.workflows import Workflow, workflow_registry


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "arcanist"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string."""
    return "0.1.0"


@pytest.fixture()
def register_workflow() -> Iterator[Callable[[str, type[Workflow]], type[Workflow]]]:
    """Register workflows for one test and remove them afterwards."""
    added: list[str] = []

    def _register(name: str, cls: type[Workflow]) -> type[Workflow]:
        workflow_registry.register_class(name, cls)
        added.append(name)
        return cls

    yield _register
    for name in added:
        if name in workflow_registry:
            workflow_registry.deregister(name)


@pytest.fixture()
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Create a project root containing an ``.arcconfig`` with ``settings``."""

    def _make(settings: dict[str, Any] | None = None, *, vcs: str | None = None) -> Path:
        root = tmp_path / "project"
        root.mkdir(exist_ok=True)
        (root / ".arcconfig").write_text(json.dumps(settings or {}), encoding="utf-8")
        if vcs:
            (root / f".{vcs}").mkdir(exist_ok=True)
        return root

    return _make


class FakeConduit:
    """Records conduit requests and answers them from a method table."""

    def __init__(self, results: dict[str, Any] | None = None) -> None:
        self.results: dict[str, Any] = {
            "conduit.connect": {"connectionID": 1234},
            **(results or {}),
        }
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def params_for(self, method: str) -> dict[str, Any]:
        for name, params in self.calls:
            if name == method:
                return params
        raise AssertionError(f"{method} was never called")

    def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        form = urllib.parse.parse_qs(request.content.decode())
        params = json.loads(form["params"][0])
        self.calls.append((method, params))
        result = self.results.get(method)
        if isinstance(result, Exception):
            return httpx.Response(
                200,
                json={"result": None, "error_code": type(result).__name__, "error_info": str(result)},
            )
        return httpx.Response(200, json={"result": result, "error_code": None, "error_info": None})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture()
def fake_conduit() -> FakeConduit:
    return FakeConduit()
