"""Stage completion and approval transitions on a loaded task."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from taskdesk.core.auth import ActorContext
from taskdesk.services.lifecycle.documents import Stage, TaskRecord, TaskStatus
from taskdesk.services.lifecycle.errors import InvalidStateError, StageNotFoundError
from taskdesk.services.lifecycle.policy import Action, require
from taskdesk.services.lifecycle.status import reconcile_after_stage_change


@dataclass(frozen=True)
class StageTransition:
    """Outcome of one stage write, including any automatic status move."""

    stage_index: int
    stage: Stage
    previous_status: TaskStatus
    status: TaskStatus

    @property
    def status_changed(self) -> bool:
        return self.previous_status is not self.status


def stage_at(task: TaskRecord, stage_index: int) -> Stage:
    # Positional addressing only; negative indices are not aliases for the tail.
    if stage_index < 0 or stage_index >= len(task.stages):
        raise StageNotFoundError()
    return task.stages[stage_index]


def set_completion(
    task: TaskRecord,
    stage_index: int,
    completed: bool,
    actor: ActorContext,
    now: datetime,
) -> StageTransition:
    stage = stage_at(task, stage_index)
    require(actor, task, Action.TOGGLE_STAGE)
    previous_status = task.status
    if completed:
        # An existing approval survives re-completion.
        stage.completed = True
        stage.completed_at = now
    else:
        stage.completed = False
        stage.completed_at = None
        stage.approved_by = None
    reconcile_after_stage_change(task, completed=completed)
    task.updated_at = now
    return StageTransition(
        stage_index=stage_index,
        stage=stage,
        previous_status=previous_status,
        status=task.status,
    )


def approve(
    task: TaskRecord,
    stage_index: int,
    actor: ActorContext,
    now: datetime,
) -> Stage:
    """Record `actor` as approver of a completed stage (admin only, idempotent)."""
    require(actor, task, Action.APPROVE_STAGE)
    stage = stage_at(task, stage_index)
    if not stage.completed:
        raise InvalidStateError("Stage must be completed before approval")
    stage.approved_by = actor.id
    task.updated_at = now
    return stage
