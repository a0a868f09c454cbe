"""HTTP client for the Conduit RPC API.

Each call is a form POST to ``<uri>/<method>`` with JSON-encoded
``params``. Calls are issued on a small background executor and return a
:class:`ConduitFuture`, so several calls may be in flight before any of
them is resolved.
"""
from __future__ import annotations

import itertools
import json
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import httpx
from rich.console import Console
from rich.markup import escape

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
MAX_IN_FLIGHT = 4
_RESPONSE_GUARD = "for(;;);"


class ConduitClientError(Exception):
    """A conduit call failed at the transport or protocol level."""

    def __init__(self, error_code: str, error_info: str | None = None) -> None:
        self.error_code = error_code
        self.error_info = error_info
        message = error_code if not error_info else f"{error_code}: {error_info}"
        super().__init__(message)


class ConduitFuture:
    """A conduit call that has been issued but not necessarily answered."""

    def __init__(self, method: str, future: "Future[Any]") -> None:
        self.method = method
        self._future = future

    def done(self) -> bool:
        return self._future.done()

    def resolve(self) -> Any:
        """Block until the call completes and return its ``result``.

        Raises
        ------
        ConduitClientError
            If the server reported an error or the request failed.
        """
        return self._future.result()

    def __repr__(self) -> str:
        state = "done" if self.done() else "pending"
        return f"ConduitFuture(method={self.method!r}, {state})"


class ConduitClient:
    """Connection to one Conduit endpoint.

    Parameters
    ----------
    uri:
        Base URI of the API, e.g. ``https://phabricator.example.com/api/``.
    trace:
        Echo every call and its duration to stderr.
    transport:
        Optional ``httpx`` transport, used by tests.
    timeout:
        Per-request timeout in seconds; ``None`` waits indefinitely.
    """

    def __init__(
        self,
        uri: str,
        *,
        trace: bool = False,
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
        console: Console | None = None,
    ) -> None:
        self.uri = uri.rstrip("/") + "/"
        self.trace = trace
        self.connection_id: Any = None
        self._console = console or Console(stderr=True)
        self._http = httpx.Client(transport=transport, timeout=timeout)
        self._executor = ThreadPoolExecutor(
            max_workers=MAX_IN_FLIGHT, thread_name_prefix="conduit"
        )
        self._counter = itertools.count(1)

    def set_connection_id(self, connection_id: Any) -> None:
        self.connection_id = connection_id

    def set_trace_mode(self, trace: bool) -> None:
        self.trace = trace

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def call_method(self, method: str, params: dict[str, Any] | None = None) -> ConduitFuture:
        """Issue ``method`` without waiting for the response."""
        payload = dict(params or {})
        if self.connection_id is not None:
            payload["__conduit__"] = {"connectionID": self.connection_id}
        call_id = next(self._counter)
        return ConduitFuture(method, self._executor.submit(self._send, call_id, method, payload))

    def call_method_synchronous(self, method: str, params: dict[str, Any] | None = None) -> Any:
        """Issue ``method`` and wait for its result."""
        return self.call_method(method, params).resolve()

    def _send(self, call_id: int, method: str, payload: dict[str, Any]) -> Any:
        if self.trace:
            self._echo(f"<<< [{call_id}] <conduit> {method}")
        logger.debug("conduit call %d: %s", call_id, method)
        started = time.monotonic()
        try:
            response = self._http.post(
                self.uri + method,
                data={
                    "params": json.dumps(payload),
                    "output": "json",
                    "__conduit__": "1",
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ConduitClientError("ERR-HTTP", str(exc)) from exc
        finally:
            if self.trace:
                elapsed = time.monotonic() - started
                self._echo(f">>> [{call_id}] <conduit> {method} ({elapsed:.3f}s)")
        return self._decode(method, response.text)

    @staticmethod
    def _decode(method: str, body: str) -> Any:
        if body.startswith(_RESPONSE_GUARD):
            body = body[len(_RESPONSE_GUARD):]
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ConduitClientError(
                "ERR-CONDUIT-CORE", f"Invalid response from '{method}': {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise ConduitClientError(
                "ERR-CONDUIT-CORE", f"Unexpected response shape from '{method}'."
            )
        if data.get("error_code"):
            raise ConduitClientError(str(data["error_code"]), data.get("error_info"))
        return data.get("result")

    def _echo(self, line: str) -> None:
        self._console.print(escape(line), soft_wrap=True, highlight=False)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._executor.shutdown(wait=True)
        self._http.close()

    def __enter__(self) -> "ConduitClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ConduitClient(uri={self.uri!r}, connection_id={self.connection_id!r})"
