"""Data models shared between the runtime layer and the mailbox."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal


@dataclass
class RegisteredGroup:
    """A chat destination the host may act on behalf of.

    The group's jid is the key of the ``registered_groups()`` map; the
    mailbox only ever reads that snapshot.
    """

    name: str
    folder: str  # Mailbox folder under data/ipc/, unique per group
    trigger: str  # @mention that activates the agent (e.g. "@Andy")
    added_at: str
    requires_trigger: bool = True
    is_main: bool = False  # Main group may address any registered chat


@dataclass(frozen=True)
class VolumeMount:
    host_path: str  # Absolute path on the host
    container_path: str  # Absolute path inside the container
    readonly: bool = False


@dataclass(frozen=True)
class RunningContainer:
    """Runtime-agnostic view of one ``ps``/``ls`` row."""

    name: str
    status: str

    @property
    def is_running(self) -> bool:
        # Apple reports "running"; Docker reports "Up 5 minutes"
        return self.status == "running" or self.status.startswith("Up")


@dataclass
class ScheduledTask:
    id: str
    group_folder: str
    chat_jid: str
    prompt: str
    schedule_type: Literal["cron", "interval", "once"]
    schedule_value: str
    context_mode: Literal["group", "isolated"]
    next_run: str | None = None
    last_run: str | None = None
    last_result: str | None = None
    status: Literal["active", "paused", "completed"] = "active"
    created_at: str = ""
