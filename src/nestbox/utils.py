"""Shared utility functions.

Small helpers used by the mailbox handlers: atomic JSON writes, task ID
generation and schedule calculations.
"""

from __future__ import annotations

import json
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo

from croniter import croniter


def write_json_atomic(path: Path, data: Any, *, indent: int | None = None) -> None:
    """Write JSON data to a file using atomic rename (tmp → final).

    Readers either see no file or the complete one; the agent side polls
    the same directories and must never parse a half-written document.

    Creates parent directories if they don't exist.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f"{path.name}.tmp")
    tmp.write_text(json.dumps(data, indent=indent))
    tmp.rename(path)


def generate_task_id() -> str:
    ms = int(datetime.now(UTC).timestamp() * 1000)
    return f"task-{ms}-{uuid.uuid4().hex[:8]}"


def compute_next_run(
    schedule_type: Literal["cron", "interval", "once"],
    schedule_value: str,
    timezone: str,
) -> str | None:
    """Compute the next run ISO timestamp for a scheduled task.

    Always returns UTC isoformat so lexicographic comparison against
    ``datetime.now(UTC).isoformat()`` works in the task store.

    Raises ValueError for invalid cron/interval/once values so callers can
    reject them.
    """
    if schedule_type == "cron":
        if not croniter.is_valid(schedule_value):
            raise ValueError(f"Invalid cron expression: {schedule_value!r}")
        tz = ZoneInfo(timezone)
        cron = croniter(schedule_value, datetime.now(tz))
        return cron.get_next(datetime).astimezone(UTC).isoformat()

    if schedule_type == "interval":
        ms = int(schedule_value)
        if ms <= 0:
            raise ValueError("Interval must be positive")
        return datetime.fromtimestamp(
            datetime.now(UTC).timestamp() + ms / 1000,
            tz=UTC,
        ).isoformat()

    if schedule_type == "once":
        scheduled = datetime.fromisoformat(schedule_value)
        if scheduled.tzinfo is None:
            scheduled = scheduled.replace(tzinfo=ZoneInfo(timezone))
        return scheduled.astimezone(UTC).isoformat()

    raise ValueError(f"Unknown schedule type: {schedule_type!r}")
