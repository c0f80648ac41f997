"""Shared test fixtures for nestbox."""

from __future__ import annotations

import pytest

# ---------------------------------------------------------------------------
# Shared helpers (plain functions, not fixtures; importable by test files)
# ---------------------------------------------------------------------------

# Cached property names that must be set via __dict__ (not model_construct).
_CACHED_PROPERTY_NAMES = frozenset(
    {
        "project_root",
        "data_dir",
        "ipc_dir",
        "poll_interval",
        "timezone",
    }
)


def make_settings(**overrides):
    """Create a Settings object with sensible defaults for testing.

    Accepts both model fields (agent, container, etc.) and cached property
    overrides (project_root, data_dir, ipc_dir, etc.). Passing ``data_dir``
    alone also points ``ipc_dir`` at ``data_dir / "ipc"``.

    Usage::

        s = make_settings(data_dir=tmp_path)
        s = make_settings(container=ContainerConfig(runtime="docker"))
    """
    from nestbox.config import (
        AgentConfig,
        ContainerConfig,
        IpcConfig,
        SchedulerConfig,
        Settings,
    )

    # Separate cached properties from model fields
    cached = {k: overrides.pop(k) for k in list(overrides) if k in _CACHED_PROPERTY_NAMES}
    if "data_dir" in cached and "ipc_dir" not in cached:
        cached["ipc_dir"] = cached["data_dir"] / "ipc"
    cached.setdefault("timezone", "UTC")

    defaults = {
        "agent": AgentConfig(),
        "container": ContainerConfig(),
        "ipc": IpcConfig(),
        "scheduler": SchedulerConfig(),
        "plugins": {},
    }
    defaults.update(overrides)
    s = Settings.model_construct(**defaults)

    for key, value in cached.items():
        s.__dict__[key] = value

    return s


# ---------------------------------------------------------------------------
# Autouse fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch, tmp_path):
    """Ensure each test starts with a clean Settings singleton.

    Uses ``make_settings()`` to build from pure defaults: no config.toml,
    no .env, no file I/O. ``data_dir`` points at the test's tmp_path so
    nothing leaks into the working tree.
    """
    safe = make_settings(data_dir=tmp_path / "data")
    monkeypatch.setattr("nestbox.config._settings", safe)
    monkeypatch.delenv("CONTAINER_RUNTIME", raising=False)


@pytest.fixture(autouse=True)
def reset_runtime():
    """Forget any runtime cached by get_runtime() between tests."""
    from nestbox.runtime import reset_runtime as _reset

    _reset()
    yield
    _reset()


# ---------------------------------------------------------------------------
# Mailbox collaborators
# ---------------------------------------------------------------------------


def make_group(folder: str, *, is_main: bool = False):
    from nestbox.types import RegisteredGroup

    return RegisteredGroup(
        name=folder.title(),
        folder=folder,
        trigger="@Andy",
        added_at="2024-01-01T00:00:00.000Z",
        is_main=is_main,
    )


class MockDeps:
    """In-memory IpcDeps that records every call."""

    def __init__(self, groups=None, *, downloads=None):
        self._groups = dict(groups or {})
        # file_key -> extension written on success; unknown keys fail the download
        self._downloads = dict(downloads or {})
        self.messages: list[tuple[str, str]] = []
        self.images: list[tuple] = []
        self.files: list[tuple] = []
        self.download_calls: list[tuple] = []
        self.tasks: dict = {}
        self.created: list[dict] = []
        self.updated: list[tuple[str, dict]] = []
        self.deleted: list[str] = []

    async def send_message(self, jid, text):
        self.messages.append((jid, text))

    async def send_image(self, jid, file_path, caption):
        self.images.append((jid, file_path, caption))

    async def send_file(self, jid, file_path, file_name):
        self.files.append((jid, file_path, file_name))

    async def download_media(self, chat_jid, message_id, file_key, dest_dir, request_id):
        self.download_calls.append((chat_jid, message_id, file_key, dest_dir, request_id))
        ext = self._downloads.get(file_key)
        if ext is None:
            return None
        filename = f"{request_id}{ext}"
        dest_dir.mkdir(parents=True, exist_ok=True)
        (dest_dir / filename).write_bytes(b"\x89PNG")
        return filename

    def registered_groups(self):
        return self._groups

    def register_group(self, jid, group):
        self._groups[jid] = group

    async def create_task(self, task):
        from nestbox.types import ScheduledTask

        self.created.append(task)
        self.tasks[task["id"]] = ScheduledTask(
            id=task["id"],
            group_folder=task["group_folder"],
            chat_jid=task["chat_jid"],
            prompt=task["prompt"],
            schedule_type=task["schedule_type"],
            schedule_value=task["schedule_value"],
            context_mode=task["context_mode"],
            next_run=task["next_run"],
            status=task["status"],
            created_at=task["created_at"],
        )

    async def update_task(self, task_id, updates):
        self.updated.append((task_id, updates))

    async def delete_task(self, task_id):
        self.deleted.append(task_id)
        self.tasks.pop(task_id, None)

    async def get_task_by_id(self, task_id):
        return self.tasks.get(task_id)
