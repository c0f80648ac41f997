"""File-based IPC watcher.

A single polling loop serves every group's mailbox. Each tick sweeps all
mailboxes in three phases (media requests, outbound messages, tasks), so
files written while the host was down are picked up by the first tick.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from nestbox.config import get_settings
from nestbox.ipc._deps import IpcDeps
from nestbox.ipc._handlers_media import handle_media_request
from nestbox.ipc._handlers_messages import handle_outbound_message
from nestbox.ipc._queue import ERRORS_DIR, Mailbox, MailQueue
from nestbox.ipc._registry import dispatch
from nestbox.logger import logger

FileHandler = Callable[[dict[str, Any], str], Awaitable[None]]

_watcher_task: asyncio.Task[None] | None = None
_stop_event: asyncio.Event | None = None


def _quarantine(queue: MailQueue, name: str, dest: Path) -> None:
    """Move a failed file out of the mailbox; unlink it if even that fails."""
    try:
        queue.quarantine(name, dest)
    except OSError as exc:
        logger.error("Failed to quarantine IPC file, deleting", file=name, err=str(exc))
        try:
            queue.complete(name)
        except OSError as unlink_exc:
            logger.error("Failed to delete IPC file", file=name, err=str(unlink_exc))


async def _process_file(
    queue: MailQueue,
    name: str,
    mailbox: Mailbox,
    errors_dir: Path,
    handler: FileHandler,
) -> bool:
    """Handle one request file. Returns False when it had already vanished."""
    try:
        data = queue.read(name)
        if data is None:
            return False
        await handler(data, name)
        queue.complete(name)
    except Exception as exc:
        logger.error(
            "Error processing IPC file",
            file=name,
            queue=queue.path.name,
            source_group=mailbox.folder,
            err=str(exc),
        )
        _quarantine(queue, name, errors_dir / f"{mailbox.folder}-{name}")
    return True


async def _drain(
    queue: MailQueue,
    mailbox: Mailbox,
    errors_dir: Path,
    handler: FileHandler,
) -> int:
    try:
        names = queue.pending()
    except OSError as exc:
        logger.error(
            "Error reading IPC directory",
            queue=queue.path.name,
            source_group=mailbox.folder,
            err=str(exc),
        )
        return 0

    processed = 0
    for name in names:
        if await _process_file(queue, name, mailbox, errors_dir, handler):
            processed += 1
    return processed


async def process_mailbox(
    mailbox: Mailbox,
    is_main: bool,
    deps: IpcDeps,
    errors_dir: Path,
) -> int:
    """Run all three phases over one group's mailbox."""

    async def media(data: dict[str, Any], name: str) -> None:
        await handle_media_request(data, name, mailbox, is_main, deps)

    async def message(data: dict[str, Any], name: str) -> None:
        await handle_outbound_message(data, name, mailbox, is_main, deps)

    async def task(data: dict[str, Any], name: str) -> None:
        await dispatch(data, mailbox.folder, is_main, deps)

    processed = await _drain(mailbox.media_requests, mailbox, errors_dir, media)
    processed += await _drain(mailbox.messages, mailbox, errors_dir, message)
    processed += await _drain(mailbox.tasks, mailbox, errors_dir, task)
    return processed


async def process_ipc_tick(ipc_base_dir: Path, deps: IpcDeps) -> int:
    """Sweep every group's mailbox once. Returns the number of files handled."""
    try:
        group_folders = sorted(
            f.name for f in ipc_base_dir.iterdir() if f.is_dir() and f.name != ERRORS_DIR
        )
    except OSError as exc:
        logger.error("Error reading IPC base directory", err=str(exc))
        return 0

    # Re-read every tick: groups can be registered or promoted at runtime
    main_folders = {g.folder for g in deps.registered_groups().values() if g.is_main}
    errors_dir = ipc_base_dir / ERRORS_DIR

    processed = 0
    for folder in group_folders:
        mailbox = Mailbox.on_disk(ipc_base_dir, folder)
        processed += await process_mailbox(mailbox, folder in main_folders, deps, errors_dir)
    return processed


async def _poll_loop(
    ipc_base_dir: Path,
    deps: IpcDeps,
    interval: float,
    stop: asyncio.Event,
) -> None:
    while not stop.is_set():
        try:
            processed = await process_ipc_tick(ipc_base_dir, deps)
            if processed:
                logger.debug("IPC tick processed files", count=processed)
        except Exception as exc:
            logger.error("IPC tick failed", err=str(exc))
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except TimeoutError:
            pass


def start_ipc_watcher(deps: IpcDeps) -> asyncio.Task[None]:
    """Start the polling loop on the running event loop and return its task.

    Only one watcher runs per process; a second call returns the task
    already running.
    """
    global _watcher_task, _stop_event  # noqa: PLW0603
    if _watcher_task is not None and not _watcher_task.done():
        logger.debug("IPC watcher already running, skipping duplicate start")
        return _watcher_task

    s = get_settings()
    ipc_base_dir = s.ipc_dir
    ipc_base_dir.mkdir(parents=True, exist_ok=True)

    _stop_event = asyncio.Event()
    _watcher_task = asyncio.get_running_loop().create_task(
        _poll_loop(ipc_base_dir, deps, s.poll_interval, _stop_event),
        name="ipc-watcher",
    )
    logger.info(
        "IPC watcher started",
        path=str(ipc_base_dir),
        poll_interval_ms=s.ipc.poll_interval_ms,
    )
    return _watcher_task


async def stop_ipc_watcher() -> None:
    """Stop the polling loop after the tick in progress finishes."""
    global _watcher_task, _stop_event  # noqa: PLW0603
    task, stop = _watcher_task, _stop_event
    _watcher_task = None
    _stop_event = None
    if task is None or stop is None:
        return
    stop.set()
    await task
    logger.info("IPC watcher stopped")
