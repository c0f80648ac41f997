"""Mailbox directories as work queues.

Each mailbox subdirectory is a queue with a handful of operations:
enumerate pending requests, read one, complete it (delete), publish a
result (write tmp then rename), or quarantine it. Handlers only talk to
:class:`MailQueue`, so they run the same against the real filesystem and
against :class:`MemoryQueue` in unit tests.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from nestbox.utils import write_json_atomic

MESSAGES_DIR = "messages"
TASKS_DIR = "tasks"
MEDIA_DIR = "media"
MEDIA_REQUESTS_DIR = "media-requests"
MAILBOX_SUBDIRS = (MESSAGES_DIR, TASKS_DIR, MEDIA_DIR, MEDIA_REQUESTS_DIR)

# Host-only quarantine for files that could not be processed: ipc/errors/
ERRORS_DIR = "errors"


class MailQueue(Protocol):
    path: Path

    def prepare(self) -> None: ...
    def pending(self) -> list[str]: ...
    def read(self, name: str) -> dict[str, Any] | None: ...
    def complete(self, name: str) -> None: ...
    def publish(self, name: str, payload: dict[str, Any]) -> None: ...
    def quarantine(self, name: str, dest: Path) -> None: ...


def _decode(raw: str, name: str) -> dict[str, Any]:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"{name}: expected a JSON object, got {type(data).__name__}")
    return data


class FileQueue:
    """A mailbox subdirectory on disk."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def __repr__(self) -> str:
        return f"FileQueue({str(self.path)!r})"

    def prepare(self) -> None:
        self.path.mkdir(parents=True, exist_ok=True)

    def pending(self) -> list[str]:
        """Names of complete request files, oldest name first.

        In-progress ``*.tmp`` files are invisible until the producer renames
        them. A missing directory simply has nothing pending.
        """
        if not self.path.exists():
            return []
        return sorted(f.name for f in self.path.iterdir() if f.suffix == ".json" and f.is_file())

    def read(self, name: str) -> dict[str, Any] | None:
        """Parse a request; None when it is already gone."""
        try:
            raw = (self.path / name).read_text()
        except FileNotFoundError:
            return None
        return _decode(raw, name)

    def complete(self, name: str) -> None:
        (self.path / name).unlink(missing_ok=True)

    def publish(self, name: str, payload: dict[str, Any]) -> None:
        write_json_atomic(self.path / name, payload)

    def quarantine(self, name: str, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        (self.path / name).rename(dest)


@dataclass
class MemoryQueue:
    """In-memory stand-in for :class:`FileQueue`.

    ``files`` holds raw JSON text so malformed input can be simulated.
    """

    path: Path = Path("/memory")
    files: dict[str, str] = field(default_factory=dict)
    published: dict[str, dict[str, Any]] = field(default_factory=dict)
    quarantined: dict[str, str] = field(default_factory=dict)

    def put(self, name: str, payload: dict[str, Any]) -> None:
        self.files[name] = json.dumps(payload)

    def prepare(self) -> None:
        pass

    def pending(self) -> list[str]:
        return sorted(n for n in self.files if n.endswith(".json"))

    def read(self, name: str) -> dict[str, Any] | None:
        raw = self.files.get(name)
        if raw is None:
            return None
        return _decode(raw, name)

    def complete(self, name: str) -> None:
        self.files.pop(name, None)

    def publish(self, name: str, payload: dict[str, Any]) -> None:
        self.published[name] = payload

    def quarantine(self, name: str, dest: Path) -> None:
        self.quarantined[str(dest)] = self.files.pop(name)


@dataclass
class Mailbox:
    """The four queues that make up one group's mailbox."""

    folder: str
    root: Path  # data/ipc/<folder>
    messages: MailQueue
    tasks: MailQueue
    media: MailQueue
    media_requests: MailQueue

    @classmethod
    def on_disk(cls, ipc_base_dir: Path, folder: str) -> Mailbox:
        root = ipc_base_dir / folder
        return cls(
            folder=folder,
            root=root,
            messages=FileQueue(root / MESSAGES_DIR),
            tasks=FileQueue(root / TASKS_DIR),
            media=FileQueue(root / MEDIA_DIR),
            media_requests=FileQueue(root / MEDIA_REQUESTS_DIR),
        )

    @classmethod
    def in_memory(cls, folder: str, root: Path | None = None) -> Mailbox:
        root = root or Path("/memory/ipc") / folder
        return cls(
            folder=folder,
            root=root,
            messages=MemoryQueue(root / MESSAGES_DIR),
            tasks=MemoryQueue(root / TASKS_DIR),
            media=MemoryQueue(root / MEDIA_DIR),
            media_requests=MemoryQueue(root / MEDIA_REQUESTS_DIR),
        )

    @property
    def media_dir(self) -> Path:
        return self.root / MEDIA_DIR
