"""IPC handlers for scheduled tasks (create/update/pause/resume/cancel).

The task store itself belongs to the host; these handlers validate the
request, check ownership and call the matching ``IpcDeps`` hook.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from nestbox.config import get_settings
from nestbox.ipc._deps import IpcDeps
from nestbox.ipc._registry import register
from nestbox.logger import logger
from nestbox.utils import compute_next_run, generate_task_id

_SCHEDULE_TYPES = ("cron", "interval", "once")


def _next_run(schedule_type: str, schedule_value: str) -> str | None:
    """Validated next_run, or None (with a warning) when the schedule is bad."""
    if schedule_type not in _SCHEDULE_TYPES:
        logger.warning("Invalid schedule_type", schedule_type=schedule_type)
        return None
    try:
        return compute_next_run(schedule_type, schedule_value, get_settings().timezone)
    except (ValueError, TypeError, KeyError):
        logger.warning(
            f"Invalid {schedule_type} value",
            schedule_value=schedule_value,
        )
        return None


async def _handle_schedule_task(
    data: dict[str, Any],
    source_group: str,
    is_main: bool,
    deps: IpcDeps,
) -> None:
    prompt = data.get("prompt")
    schedule_type = data.get("schedule_type")
    schedule_value = data.get("schedule_value")
    target_jid = data.get("targetJid")

    if not (prompt and schedule_type and schedule_value and target_jid):
        logger.warning("Missing required fields for schedule_task", source_group=source_group)
        return

    target_group = deps.registered_groups().get(target_jid)
    if target_group is None:
        logger.warning(
            "Cannot schedule task: target group not registered",
            target_jid=target_jid,
        )
        return

    if not is_main and target_group.folder != source_group:
        logger.warning(
            "Unauthorized schedule_task attempt blocked",
            source_group=source_group,
            target_folder=target_group.folder,
        )
        return

    next_run = _next_run(schedule_type, str(schedule_value))
    if next_run is None:
        return

    context_mode = data.get("context_mode")
    if context_mode not in ("group", "isolated"):
        context_mode = "isolated"

    task_id = generate_task_id()
    await deps.create_task(
        {
            "id": task_id,
            "group_folder": target_group.folder,
            "chat_jid": target_jid,
            "prompt": prompt,
            "schedule_type": schedule_type,
            "schedule_value": str(schedule_value),
            "context_mode": context_mode,
            "next_run": next_run,
            "status": "active",
            "created_at": datetime.now(UTC).isoformat(),
        }
    )
    logger.info(
        "Task created via IPC",
        task_id=task_id,
        source_group=source_group,
        target_folder=target_group.folder,
        context_mode=context_mode,
    )


async def _handle_update_task(
    data: dict[str, Any],
    source_group: str,
    is_main: bool,
    deps: IpcDeps,
) -> None:
    updates: dict[str, Any] = {}
    if data.get("prompt"):
        updates["prompt"] = data["prompt"]

    schedule_type = data.get("schedule_type")
    schedule_value = data.get("schedule_value")
    if schedule_type or schedule_value:
        task = await deps.get_task_by_id(data.get("taskId") or "")
        schedule_type = schedule_type or (task.schedule_type if task else None)
        schedule_value = schedule_value or (task.schedule_value if task else None)
        if not (schedule_type and schedule_value):
            logger.warning("Incomplete schedule in update_task", task_id=data.get("taskId"))
            return
        next_run = _next_run(schedule_type, str(schedule_value))
        if next_run is None:
            return
        updates.update(
            schedule_type=schedule_type,
            schedule_value=str(schedule_value),
            next_run=next_run,
        )

    if not updates:
        logger.warning("update_task carries no changes", task_id=data.get("taskId"))
        return

    await _authorized_task_action(
        data,
        source_group,
        is_main,
        deps,
        "update",
        lambda tid: deps.update_task(tid, updates),
    )


async def _handle_pause_task(
    data: dict[str, Any],
    source_group: str,
    is_main: bool,
    deps: IpcDeps,
) -> None:
    await _authorized_task_action(
        data,
        source_group,
        is_main,
        deps,
        "pause",
        lambda tid: deps.update_task(tid, {"status": "paused"}),
    )


async def _handle_resume_task(
    data: dict[str, Any],
    source_group: str,
    is_main: bool,
    deps: IpcDeps,
) -> None:
    await _authorized_task_action(
        data,
        source_group,
        is_main,
        deps,
        "resume",
        lambda tid: deps.update_task(tid, {"status": "active"}),
    )


async def _handle_cancel_task(
    data: dict[str, Any],
    source_group: str,
    is_main: bool,
    deps: IpcDeps,
) -> None:
    await _authorized_task_action(data, source_group, is_main, deps, "cancel", deps.delete_task)


async def _authorized_task_action(
    data: dict[str, Any],
    source_group: str,
    is_main: bool,
    deps: IpcDeps,
    action_name: str,
    action: Callable[[str], Awaitable[Any]],
) -> None:
    """Fetch a task, verify the source group owns it, then run *action*."""
    task_id = data.get("taskId")
    if not task_id:
        logger.warning(f"{action_name}_task without taskId", source_group=source_group)
        return

    task = await deps.get_task_by_id(task_id)
    if task is None:
        logger.warning("Task not found", task_id=task_id, source_group=source_group)
        return

    if not is_main and task.group_folder != source_group:
        logger.warning(
            f"Unauthorized task {action_name} attempt",
            task_id=task_id,
            source_group=source_group,
        )
        return

    await action(task_id)
    logger.info(
        f"Task {action_name}d via IPC",
        task_id=task_id,
        source_group=source_group,
    )


register("schedule_task", _handle_schedule_task)
register("update_task", _handle_update_task)
register("pause_task", _handle_pause_task)
register("resume_task", _handle_resume_task)
register("cancel_task", _handle_cancel_task)
