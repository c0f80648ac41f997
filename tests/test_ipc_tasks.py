"""Tests for task and group-registration requests dispatched from tasks/."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from conftest import MockDeps, make_group

from nestbox.ipc import dispatch
from nestbox.utils import compute_next_run

MAIN = make_group("main", is_main=True)
TEAM = make_group("team")
OTHER = make_group("other")


@pytest.fixture
def deps() -> MockDeps:
    return MockDeps({"main@g.us": MAIN, "team@g.us": TEAM, "other@g.us": OTHER})


async def _schedule(deps, source_group="team", is_main=False, **overrides) -> dict:
    data = {
        "type": "schedule_task",
        "prompt": "summarize the day",
        "schedule_type": "cron",
        "schedule_value": "0 9 * * *",
        "targetJid": "team@g.us",
        **overrides,
    }
    await dispatch(data, source_group, is_main, deps)
    return data


class TestScheduleTask:
    async def test_group_schedules_for_itself(self, deps):
        await _schedule(deps)

        assert len(deps.created) == 1
        task = deps.created[0]
        assert task["group_folder"] == "team"
        assert task["chat_jid"] == "team@g.us"
        assert task["context_mode"] == "isolated"
        assert task["status"] == "active"
        assert task["id"].startswith("task-")
        assert datetime.fromisoformat(task["next_run"]) > datetime.now(UTC)

    async def test_group_cannot_schedule_for_another(self, deps):
        await _schedule(deps, targetJid="other@g.us")
        assert deps.created == []

    async def test_main_schedules_for_any_group(self, deps):
        await _schedule(deps, source_group="main", is_main=True, targetJid="other@g.us")
        assert deps.created[0]["group_folder"] == "other"

    async def test_unregistered_target_is_refused(self, deps):
        await _schedule(deps, source_group="main", is_main=True, targetJid="ghost@g.us")
        assert deps.created == []

    async def test_invalid_cron_is_refused(self, deps):
        await _schedule(deps, schedule_value="every tuesday")
        assert deps.created == []

    async def test_interval_must_be_positive(self, deps):
        await _schedule(deps, schedule_type="interval", schedule_value="-5")
        assert deps.created == []

    async def test_once_in_configured_timezone(self, deps):
        await _schedule(deps, schedule_type="once", schedule_value="2030-01-01T09:00:00")
        assert deps.created[0]["next_run"] == "2030-01-01T09:00:00+00:00"

    async def test_group_context_mode_is_kept(self, deps):
        await _schedule(deps, context_mode="group")
        assert deps.created[0]["context_mode"] == "group"

    async def test_missing_fields_are_refused(self, deps):
        await dispatch({"type": "schedule_task", "prompt": "x"}, "team", False, deps)
        assert deps.created == []


class TestTaskActions:
    @pytest.fixture
    async def task_id(self, deps) -> str:
        await _schedule(deps)
        return deps.created[0]["id"]

    async def test_owner_can_pause_and_resume(self, deps, task_id):
        await dispatch({"type": "pause_task", "taskId": task_id}, "team", False, deps)
        await dispatch({"type": "resume_task", "taskId": task_id}, "team", False, deps)
        assert deps.updated == [(task_id, {"status": "paused"}), (task_id, {"status": "active"})]

    async def test_other_group_cannot_pause(self, deps, task_id):
        await dispatch({"type": "pause_task", "taskId": task_id}, "other", False, deps)
        assert deps.updated == []

    async def test_main_can_cancel_any_task(self, deps, task_id):
        await dispatch({"type": "cancel_task", "taskId": task_id}, "main", True, deps)
        assert deps.deleted == [task_id]

    async def test_unknown_task_is_a_noop(self, deps):
        await dispatch({"type": "cancel_task", "taskId": "task-0-missing"}, "main", True, deps)
        assert deps.deleted == []

    async def test_update_prompt(self, deps, task_id):
        await dispatch(
            {"type": "update_task", "taskId": task_id, "prompt": "new prompt"},
            "team",
            False,
            deps,
        )
        assert deps.updated == [(task_id, {"prompt": "new prompt"})]

    async def test_update_schedule_recomputes_next_run(self, deps, task_id):
        await dispatch(
            {"type": "update_task", "taskId": task_id, "schedule_value": "*/5 * * * *"},
            "team",
            False,
            deps,
        )
        (updated_id, updates) = deps.updated[0]
        assert updated_id == task_id
        assert updates["schedule_type"] == "cron"
        assert updates["schedule_value"] == "*/5 * * * *"
        assert "next_run" in updates

    async def test_update_with_bad_schedule_is_refused(self, deps, task_id):
        await dispatch(
            {"type": "update_task", "taskId": task_id, "schedule_value": "nonsense"},
            "team",
            False,
            deps,
        )
        assert deps.updated == []


class TestRegisterGroup:
    REQUEST = {
        "type": "register_group",
        "jid": "new@g.us",
        "name": "New",
        "folder": "new-group",
        "trigger": "@Andy",
    }

    async def test_main_registers_group(self, deps):
        await dispatch(dict(self.REQUEST), "main", True, deps)
        group = deps.registered_groups()["new@g.us"]
        assert group.folder == "new-group"
        assert group.requires_trigger is True
        assert group.is_main is False

    async def test_non_main_is_refused(self, deps):
        await dispatch(dict(self.REQUEST), "team", False, deps)
        assert "new@g.us" not in deps.registered_groups()

    @pytest.mark.parametrize("folder", ["../evil", "errors", "-dash", "a/b", ""])
    async def test_invalid_folder_is_refused(self, deps, folder):
        await dispatch({**self.REQUEST, "folder": folder}, "main", True, deps)
        assert "new@g.us" not in deps.registered_groups()

    async def test_folder_already_in_use_is_refused(self, deps):
        await dispatch({**self.REQUEST, "folder": "team"}, "main", True, deps)
        assert "new@g.us" not in deps.registered_groups()


class TestDispatch:
    async def test_unknown_type_is_ignored(self, deps):
        await dispatch({"type": "self_destruct"}, "main", True, deps)
        assert deps.created == deps.updated == deps.deleted == []


class TestComputeNextRun:
    def test_unknown_type_raises(self):
        with pytest.raises(ValueError):
            compute_next_run("hourly", "1", "UTC")  # type: ignore[arg-type]

    def test_once_with_offset_is_normalized_to_utc(self):
        assert (
            compute_next_run("once", "2030-06-01T12:00:00+02:00", "UTC")
            == "2030-06-01T10:00:00+00:00"
        )

    def test_cron_in_timezone(self):
        result = datetime.fromisoformat(compute_next_run("cron", "0 0 * * *", "Asia/Tokyo"))
        assert result.tzinfo is not None
        assert result.astimezone(UTC).hour == 15
