"""Conduit RPC client and session handshake."""
from __future__ import annotations

from arcanist.conduit.client import ConduitClient, ConduitClientError, ConduitFuture
from arcanist.conduit.session import (
    CLIENT_NAME,
    CLIENT_VERSION,
    Identity,
    authenticate,
    connect_parameters,
    open_session,
)

__all__ = [
    "CLIENT_NAME",
    "CLIENT_VERSION",
    "ConduitClient",
    "ConduitClientError",
    "ConduitFuture",
    "Identity",
    "authenticate",
    "connect_parameters",
    "open_session",
]
