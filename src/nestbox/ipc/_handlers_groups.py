"""IPC handler for group registration (main group only)."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Any

from nestbox.ipc._deps import IpcDeps
from nestbox.ipc._queue import ERRORS_DIR
from nestbox.ipc._registry import register
from nestbox.logger import logger
from nestbox.types import RegisteredGroup

# Folder names become directories under data/ipc/ and container names
_FOLDER_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,63}$")


def is_valid_folder(folder: str) -> bool:
    return bool(_FOLDER_RE.match(folder)) and folder != ERRORS_DIR


async def _handle_register_group(
    data: dict[str, Any],
    source_group: str,
    is_main: bool,
    deps: IpcDeps,
) -> None:
    if not is_main:
        logger.warning("Unauthorized register_group attempt blocked", source_group=source_group)
        return

    jid = data.get("jid")
    name = data.get("name")
    folder = data.get("folder")
    trigger = data.get("trigger")
    if not (jid and name and folder and trigger):
        logger.warning("Invalid register_group request - missing required fields", data=data)
        return

    if not is_valid_folder(folder):
        logger.warning("Invalid register_group folder name", folder=folder)
        return

    taken = {g.folder for j, g in deps.registered_groups().items() if j != jid}
    if folder in taken:
        logger.warning("register_group folder already in use", folder=folder, jid=jid)
        return

    deps.register_group(
        jid,
        RegisteredGroup(
            name=name,
            folder=folder,
            trigger=trigger,
            added_at=datetime.now(UTC).isoformat(),
            requires_trigger=bool(data.get("requiresTrigger", True)),
        ),
    )
    logger.info("Group registered via IPC", jid=jid, folder=folder, source_group=source_group)


register("register_group", _handle_register_group)
