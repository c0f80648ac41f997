"""IPC protocol definitions: error markers and authorization rules.

Agents write one JSON document per request, discriminated by ``type``.
Messages (``messages/``) leave the sandbox as chat output; media requests
(``media-requests/``) pull platform media into ``media/``; tasks
(``tasks/``) mutate host state through the handler registry.
"""

from __future__ import annotations

from typing import Any

from nestbox.types import RegisteredGroup

# Error strings the agent-side tools match on; keep them stable
ERR_MISSING_CHAT_JID = "Missing chatJid in request"
ERR_MISSING_FILE_KEY = "Missing fileKey in request"
ERR_UNAUTHORIZED_CHAT = "Unauthorized chatJid"
ERR_DOWNLOAD_FAILED = "Download failed"


def may_target(
    chat_jid: str,
    source_group: str,
    is_main: bool,
    registered_groups: dict[str, RegisteredGroup],
) -> bool:
    """Whether *source_group* may act on *chat_jid*.

    The main group may address any chat; every other group only its own
    registered jid.
    """
    if is_main:
        return True
    target = registered_groups.get(chat_jid)
    return target is not None and target.folder == source_group


def media_error(error: str, message_id: Any) -> dict[str, Any]:
    """Payload of a ``media/<requestId>.error`` marker."""
    return {"error": error, "messageId": message_id}
