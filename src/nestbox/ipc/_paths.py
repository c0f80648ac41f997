"""Mailbox locations on the host and their view from inside the agent."""

from __future__ import annotations

import os
from pathlib import Path

from nestbox.config import get_settings
from nestbox.ipc._queue import MAILBOX_SUBDIRS, MEDIA_DIR
from nestbox.types import VolumeMount


def group_ipc_dir(group_folder: str) -> Path:
    return get_settings().ipc_dir / group_folder


def ensure_mailbox(group_folder: str) -> Path:
    """Create a group's mailbox tree before its container starts."""
    root = group_ipc_dir(group_folder)
    for sub in MAILBOX_SUBDIRS:
        (root / sub).mkdir(parents=True, exist_ok=True)
    return root


def mailbox_mount(group_folder: str) -> VolumeMount:
    """Bind mount of the group's mailbox at the agent's IPC root (read-write)."""
    return VolumeMount(
        host_path=str(ensure_mailbox(group_folder)),
        container_path=get_settings().ipc.container_root,
        readonly=False,
    )


def resolve_agent_path(group_dir: Path, agent_path: str, container_root: str) -> Path | None:
    """Translate an agent-side path into the host path under ``<group_dir>/media/``.

    ``/workspace/ipc/media/out.png`` → ``<group_dir>/media/out.png``.
    Resolution is lexical (normpath, no symlink following). Returns None for
    anything outside the agent's IPC root or that normalizes outside the
    group's media directory.
    """
    prefix = container_root.rstrip("/") + "/"
    if not agent_path.startswith(prefix):
        return None

    base = os.path.abspath(group_dir)
    media_dir = os.path.normpath(os.path.join(base, MEDIA_DIR))
    candidate = os.path.normpath(os.path.join(base, agent_path[len(prefix) :]))
    if candidate == media_dir or os.path.commonpath([media_dir, candidate]) != media_dir:
        return None
    return Path(candidate)
