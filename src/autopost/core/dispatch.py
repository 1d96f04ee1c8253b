# src/autopost/core/dispatch.py

from __future__ import annotations

"""
Inbound message routing shared by all connectors.

- prefixed text from an authorised sender -> command registry (reply returned)
- anything else from other senders -> responder index (reply sent directly)

Nothing reaches the scheduler except through commands.
"""

import logging

from ..cli.commands import registry as command_registry
from .state import AppState

logger = logging.getLogger(__name__)


def is_authorized(state: AppState, user_id: str | None, self_id: str | None = None) -> bool:
    if not user_id:
        return False
    if self_id and user_id == self_id:
        return True
    owners = getattr(state.settings, "owner_ids", None) or []
    return user_id in owners


async def handle_inbound(
    state: AppState,
    *,
    text: str,
    sender: str | None,
    destination: str,
    self_id: str | None = None,
    trusted: bool = False,
) -> str | None:
    """
    Route one inbound message.

    trusted marks a local surface (the console) whose user may always run commands.

    Returns the command reply the connector should deliver, or None when the
    message was not a command (a responder may have replied on its own).
    """
    prefix = str(getattr(state.settings, "command_prefix", ".") or ".")
    body = (text or "").strip()
    if not body:
        return None

    if body.startswith(prefix) and (trusted or is_authorized(state, sender, self_id)):
        try:
            return await command_registry.handle(
                state, body, user_id=sender, room_id=destination, prefix=prefix
            )
        except Exception:
            logger.exception("Command handler crashed.")
            return "Internal error while handling a command."

    # Never answer ourselves (a response containing its own alias would loop).
    if self_id and sender == self_id:
        return None

    await state.responders.respond(destination, body, state.messenger)
    return None
