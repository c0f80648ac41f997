"""File-based IPC between host and containers."""

# Import handler modules to trigger self-registration in the registry.
import nestbox.ipc._handlers_groups  # noqa: F401
import nestbox.ipc._handlers_tasks  # noqa: F401
from nestbox.ipc._deps import IpcDeps
from nestbox.ipc._paths import ensure_mailbox, group_ipc_dir, mailbox_mount, resolve_agent_path
from nestbox.ipc._queue import FileQueue, Mailbox, MailQueue, MemoryQueue
from nestbox.ipc._registry import dispatch, register
from nestbox.ipc._watcher import (
    process_ipc_tick,
    process_mailbox,
    start_ipc_watcher,
    stop_ipc_watcher,
)

__all__ = [
    "FileQueue",
    "IpcDeps",
    "MailQueue",
    "Mailbox",
    "MemoryQueue",
    "dispatch",
    "ensure_mailbox",
    "group_ipc_dir",
    "mailbox_mount",
    "process_ipc_tick",
    "process_mailbox",
    "register",
    "resolve_agent_path",
    "start_ipc_watcher",
    "stop_ipc_watcher",
]
