"""Media requests: pull platform media into a group's ``media/`` directory.

The agent has no network, so when it needs an image or file attached to
a chat message it drops ``media-requests/<requestId>.json`` and polls
``media/`` for either ``<requestId><ext>`` (written by the download
collaborator) or ``<requestId>.error``.
"""

from __future__ import annotations

import re
from pathlib import PurePath
from typing import Any

from nestbox.ipc._deps import IpcDeps
from nestbox.ipc._protocol import (
    ERR_DOWNLOAD_FAILED,
    ERR_MISSING_CHAT_JID,
    ERR_MISSING_FILE_KEY,
    ERR_UNAUTHORIZED_CHAT,
    media_error,
    may_target,
)
from nestbox.ipc._queue import Mailbox
from nestbox.logger import logger

# requestId names files under media/, so it must stay a single path segment
_REQUEST_ID_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]{0,127}")


def _fail(mailbox: Mailbox, request_id: str, error: str, message_id: Any) -> None:
    mailbox.media.publish(f"{request_id}.error", media_error(error, message_id))


async def handle_media_request(
    data: dict[str, Any],
    name: str,
    mailbox: Mailbox,
    is_main: bool,
    deps: IpcDeps,
) -> None:
    """Serve one media request. The caller deletes the request file afterwards."""
    request_id = str(data.get("requestId") or PurePath(name).stem)
    if not _REQUEST_ID_RE.fullmatch(request_id) or ".." in request_id:
        logger.warning(
            "Media request with invalid requestId dropped",
            request_id=request_id,
            file=name,
            source_group=mailbox.folder,
        )
        return

    message_id = data.get("messageId")
    chat_jid = data.get("chatJid")

    if not chat_jid:
        logger.warning(
            "Media request missing chatJid",
            request_id=request_id,
            source_group=mailbox.folder,
        )
        _fail(mailbox, request_id, ERR_MISSING_CHAT_JID, message_id)
        return

    if not may_target(chat_jid, mailbox.folder, is_main, deps.registered_groups()):
        logger.warning(
            "Unauthorized IPC media request blocked",
            chat_jid=chat_jid,
            source_group=mailbox.folder,
            request_id=request_id,
        )
        _fail(mailbox, request_id, ERR_UNAUTHORIZED_CHAT, message_id)
        return

    file_key = data.get("fileKey") or data.get("imageKey")
    if not file_key:
        logger.warning(
            "Media request missing fileKey",
            request_id=request_id,
            source_group=mailbox.folder,
        )
        _fail(mailbox, request_id, ERR_MISSING_FILE_KEY, message_id)
        return

    mailbox.media.prepare()
    filename = await deps.download_media(
        chat_jid,
        message_id,
        file_key,
        mailbox.media_dir,
        request_id,
    )
    if filename:
        logger.info(
            "Media downloaded via IPC",
            request_id=request_id,
            filename=filename,
            source_group=mailbox.folder,
        )
        return

    logger.warning(
        "Media download failed",
        request_id=request_id,
        message_id=message_id,
        source_group=mailbox.folder,
    )
    _fail(mailbox, request_id, ERR_DOWNLOAD_FAILED, message_id)
