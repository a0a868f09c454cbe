"""Opening and authenticating a conduit session for a workflow."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from arcanist.conduit.client import ConduitClient
from arcanist.core.errors import MissingConduitURIError, UnrecognizedUserError

if TYPE_CHECKING:
    from arcanist.core.context import RunContext
    from arcanist.core.working_copy import WorkingCopyIdentity

logger = logging.getLogger(__name__)

CLIENT_NAME = "arc"
CLIENT_VERSION = 2


@dataclass(frozen=True)
class Identity:
    user_name: str
    user_guid: str


def connect_parameters(context: "RunContext") -> dict[str, object]:
    """Parameters for ``conduit.connect`` describing this client and caller."""
    return {
        "client": CLIENT_NAME,
        "clientVersion": CLIENT_VERSION,
        "clientDescription": f"{context.hostname}:{context.command_line}",
        "user": context.user,
    }


def open_session(context: "RunContext", working_copy: "WorkingCopyIdentity") -> ConduitClient:
    """Create a client for the working copy's conduit and connect it.

    Raises
    ------
    MissingConduitURIError
        If the working copy does not configure ``conduit_uri``.
    ConduitClientError
        If the connect call fails.
    """
    uri = working_copy.conduit_uri
    if not uri:
        raise MissingConduitURIError()

    conduit = ConduitClient(
        uri,
        trace=context.trace,
        transport=context.transport,
        console=context.err_console,
    )
    try:
        connection = conduit.call_method_synchronous("conduit.connect", connect_parameters(context))
        conduit.set_connection_id(connection["connectionID"])
    except BaseException:
        conduit.close()
        raise
    logger.debug("Connected to %s as connection %r", uri, conduit.connection_id)
    return conduit


def authenticate(conduit: ConduitClient, user_name: str) -> Identity:
    """Look up ``user_name`` and return the caller's identity.

    Raises
    ------
    UnrecognizedUserError
        If the server has no user for ``user_name``.
    """
    lookup = conduit.call_method("user.find", {"aliases": [user_name]})
    guids = lookup.resolve()
    # an empty result may arrive as a JSON list
    guid = guids.get(user_name) if isinstance(guids, dict) else None
    if not guid:
        raise UnrecognizedUserError(user_name)
    logger.debug("Authenticated %s as %s", user_name, guid)
    return Identity(user_name=user_name, user_guid=guid)
