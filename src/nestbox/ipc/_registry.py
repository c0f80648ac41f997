"""Handler registry for IPC task types."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from nestbox.ipc._deps import IpcDeps
from nestbox.logger import logger

TaskHandler = Callable[[dict[str, Any], str, bool, IpcDeps], Awaitable[None]]

# type -> async handler(data, source_group, is_main, deps)
HANDLERS: dict[str, TaskHandler] = {}


def register(type_name: str, handler: TaskHandler) -> None:
    """Register a handler for an IPC task type.

    Called at import time by each handler module. Duplicate registrations
    overwrite (last write wins).
    """
    HANDLERS[type_name] = handler


async def dispatch(
    data: dict[str, Any],
    source_group: str,
    is_main: bool,
    deps: IpcDeps,
) -> None:
    """Dispatch an IPC task to its registered handler."""
    task_type = data.get("type") or ""
    handler = HANDLERS.get(task_type)
    if handler is None:
        logger.warning("Unknown IPC task type", type=task_type, source_group=source_group)
        return
    await handler(data, source_group, is_main, deps)
