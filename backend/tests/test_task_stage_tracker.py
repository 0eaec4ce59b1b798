# ruff: noqa: S101
from __future__ import annotations

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from taskdesk.core.auth import ActorContext, Role
from taskdesk.services.lifecycle import stages
from taskdesk.services.lifecycle.documents import (
    Stage,
    TaskPriority,
    TaskRecord,
    TaskStatus,
    invariant_violations,
)
from taskdesk.services.lifecycle.errors import (
    ForbiddenError,
    InvalidStateError,
    StageNotFoundError,
)

NOW = datetime(2026, 3, 1, 12, 0, 0)


def _make_task(*, assigned_to, names: tuple[str, ...] = ("draft", "review")) -> TaskRecord:
    return TaskRecord(
        id=uuid4(),
        title="Design doc",
        description="Write and review",
        assigned_to=assigned_to,
        assigned_by=uuid4(),
        priority=TaskPriority.MEDIUM,
        status=TaskStatus.PENDING,
        due_date=NOW,
        stages=[Stage(name=name) for name in names],
        created_at=NOW,
        updated_at=NOW,
    )


def test_completing_stage_stamps_completed_at() -> None:
    member = ActorContext(id=uuid4(), role=Role.MEMBER)
    task = _make_task(assigned_to=member.id)
    transition = stages.set_completion(task, 0, True, member, NOW)
    assert transition.stage.completed is True
    assert transition.stage.completed_at == NOW
    assert transition.status_changed is False
    assert task.status is TaskStatus.PENDING
    assert invariant_violations(task) == []


def test_completing_last_stage_completes_task() -> None:
    member = ActorContext(id=uuid4(), role=Role.MEMBER)
    task = _make_task(assigned_to=member.id)
    stages.set_completion(task, 0, True, member, NOW)
    transition = stages.set_completion(task, 1, True, member, NOW)
    assert transition.previous_status is TaskStatus.PENDING
    assert transition.status is TaskStatus.COMPLETED
    assert transition.status_changed is True


def test_uncompleting_clears_completion_and_approval() -> None:
    admin = ActorContext(id=uuid4(), role=Role.ADMIN)
    task = _make_task(assigned_to=uuid4())
    stages.set_completion(task, 0, True, admin, NOW)
    stages.approve(task, 0, admin, NOW)
    assert task.stages[0].approved_by == admin.id

    stages.set_completion(task, 0, False, admin, NOW)
    assert task.stages[0].completed is False
    assert task.stages[0].completed_at is None
    assert task.stages[0].approved_by is None
    assert invariant_violations(task) == []


def test_recompleting_keeps_existing_approval() -> None:
    admin = ActorContext(id=uuid4(), role=Role.ADMIN)
    task = _make_task(assigned_to=uuid4())
    stages.set_completion(task, 0, True, admin, NOW)
    stages.approve(task, 0, admin, NOW)
    later = NOW + timedelta(hours=1)
    stages.set_completion(task, 0, True, admin, later)
    assert task.stages[0].approved_by == admin.id
    assert task.stages[0].completed_at == later


@pytest.mark.parametrize("index", [-1, 2, 99])
def test_out_of_range_index_is_stage_not_found(index: int) -> None:
    member = ActorContext(id=uuid4(), role=Role.MEMBER)
    task = _make_task(assigned_to=member.id)
    with pytest.raises(StageNotFoundError):
        stages.set_completion(task, index, True, member, NOW)
    with pytest.raises(StageNotFoundError):
        stages.approve(task, index, ActorContext(id=uuid4(), role=Role.ADMIN), NOW)


def test_non_assignee_cannot_toggle() -> None:
    outsider = ActorContext(id=uuid4(), role=Role.MEMBER)
    task = _make_task(assigned_to=uuid4())
    with pytest.raises(ForbiddenError):
        stages.set_completion(task, 0, True, outsider, NOW)
    assert task.stages[0].completed is False


def test_approving_incomplete_stage_fails_without_mutation() -> None:
    admin = ActorContext(id=uuid4(), role=Role.ADMIN)
    task = _make_task(assigned_to=uuid4())
    with pytest.raises(InvalidStateError) as exc:
        stages.approve(task, 0, admin, NOW)
    assert "completed before approval" in exc.value.message
    assert task.stages[0].approved_by is None
    assert task.updated_at == NOW


def test_member_cannot_approve_even_own_task() -> None:
    member = ActorContext(id=uuid4(), role=Role.MEMBER)
    task = _make_task(assigned_to=member.id)
    stages.set_completion(task, 0, True, member, NOW)
    with pytest.raises(ForbiddenError):
        stages.approve(task, 0, member, NOW)


def test_reapproval_overwrites_approver() -> None:
    first = ActorContext(id=uuid4(), role=Role.ADMIN)
    second = ActorContext(id=uuid4(), role=Role.ADMIN)
    task = _make_task(assigned_to=uuid4())
    stages.set_completion(task, 1, True, first, NOW)
    stages.approve(task, 1, first, NOW)
    stages.approve(task, 1, second, NOW)
    assert task.stages[1].approved_by == second.id


def test_invariant_violations_reports_inconsistent_stage() -> None:
    task = _make_task(assigned_to=uuid4())
    task.stages[0].approved_by = uuid4()
    task.stages[1].completed = True
    problems = invariant_violations(task)
    assert any("approved but not completed" in problem for problem in problems)
    assert any("completed_at must be set" in problem for problem in problems)
    task.stages = []
    assert "task must have at least one stage" in invariant_violations(task)
