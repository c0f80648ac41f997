"""Outbound messages written by the agent: text, images and files.

Requests that carry a ``filePath`` first pass the containment check, which
is the only thing keeping an agent from mailing arbitrary host files out of
the sandbox; every outbound request then passes the destination check.
Delivery is attempted at most once; the caller deletes the file whatever
the outcome.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from nestbox.config import get_settings
from nestbox.ipc._deps import IpcDeps
from nestbox.ipc._paths import resolve_agent_path
from nestbox.ipc._protocol import may_target
from nestbox.ipc._queue import Mailbox
from nestbox.logger import logger

# Types whose filePath must resolve inside the mailbox media/ directory
_FILE_TYPES = frozenset({"image_message", "file_message"})

_LABELS = {
    "message": "message",
    "image_message": "image message",
    "file_message": "file message",
}


def _host_path(data: dict[str, Any], mailbox: Mailbox, label: str) -> Path | None:
    raw = data.get("filePath")
    if not isinstance(raw, str) or not raw:
        logger.warning(f"IPC {label} missing filePath", source_group=mailbox.folder)
        return None

    host_path = resolve_agent_path(mailbox.root, raw, get_settings().ipc.container_root)
    if host_path is None:
        kind = "image" if label == "image message" else "file"
        logger.warning(
            f"IPC {kind} path traversal attempt blocked",
            file_path=raw,
            source_group=mailbox.folder,
        )
    return host_path


async def _deliver_text(
    data: dict[str, Any], chat_jid: str, host_path: Path | None, mailbox: Mailbox, deps: IpcDeps
) -> None:
    text = data.get("text")
    if not text:
        logger.warning("IPC message missing text", source_group=mailbox.folder)
        return
    sender = data.get("sender") or get_settings().agent.name
    await deps.send_message(chat_jid, f"{sender}: {text}")
    logger.info("IPC message sent", chat_jid=chat_jid, source_group=mailbox.folder)


async def _deliver_image(
    data: dict[str, Any], chat_jid: str, host_path: Path, mailbox: Mailbox, deps: IpcDeps
) -> None:
    await deps.send_image(chat_jid, host_path, data.get("caption"))
    logger.info(
        "IPC image message sent",
        chat_jid=chat_jid,
        file=host_path.name,
        source_group=mailbox.folder,
    )


async def _deliver_file(
    data: dict[str, Any], chat_jid: str, host_path: Path, mailbox: Mailbox, deps: IpcDeps
) -> None:
    file_name = data.get("fileName") or host_path.name
    await deps.send_file(chat_jid, host_path, file_name)
    logger.info(
        "IPC file message sent",
        chat_jid=chat_jid,
        file=file_name,
        source_group=mailbox.folder,
    )


Deliverer = Callable[[dict[str, Any], str, Any, Mailbox, IpcDeps], Awaitable[None]]

_DELIVERERS: dict[str, Deliverer] = {
    "message": _deliver_text,
    "image_message": _deliver_image,
    "file_message": _deliver_file,
}


async def handle_outbound_message(
    data: dict[str, Any],
    name: str,
    mailbox: Mailbox,
    is_main: bool,
    deps: IpcDeps,
) -> None:
    msg_type = data.get("type") or ""
    deliver = _DELIVERERS.get(msg_type)
    if deliver is None:
        logger.warning("Unknown IPC message type", type=msg_type, file=name)
        return

    label = _LABELS[msg_type]
    chat_jid = data.get("chatJid")
    if not chat_jid:
        logger.warning(f"IPC {label} missing chatJid", file=name, source_group=mailbox.folder)
        return

    host_path = None
    if msg_type in _FILE_TYPES:
        host_path = _host_path(data, mailbox, label)
        if host_path is None:
            return

    if not may_target(chat_jid, mailbox.folder, is_main, deps.registered_groups()):
        logger.warning(
            f"Unauthorized IPC {label} attempt blocked",
            chat_jid=chat_jid,
            source_group=mailbox.folder,
        )
        return

    await deliver(data, chat_jid, host_path, mailbox, deps)
