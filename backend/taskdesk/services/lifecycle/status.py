"""Task-level status state machine.

Explicit writes come from update requests; automatic transitions follow
stage completion changes. Administrator writes are a direct set and bypass
the transition graph.
"""

from __future__ import annotations

from taskdesk.core.auth import ActorContext
from taskdesk.services.lifecycle.documents import TaskRecord, TaskStatus
from taskdesk.services.lifecycle.errors import InvalidStateError
from taskdesk.services.lifecycle.policy import effective_status_request


def apply_explicit_status(
    task: TaskRecord,
    requested: TaskStatus,
    actor: ActorContext,
) -> bool:
    """Apply a requested status write. Returns whether the status changed.

    Callers must have authorized `Action.UPDATE_STATUS` already. Member
    writes against a reviewed task leave it untouched.
    """
    if actor.is_admin:
        changed = task.status is not requested
        task.status = requested
        return changed
    if task.status is TaskStatus.REVIEWED:
        # Only an administrator can move a task out of review.
        return False
    target = effective_status_request(actor, task.status, requested)
    if target is task.status:
        return False
    if target is TaskStatus.COMPLETED and not task.all_stages_completed():
        raise InvalidStateError("All stages must be completed before the task is completed")
    task.status = target
    return True


def reconcile_after_stage_change(task: TaskRecord, *, completed: bool) -> bool:
    """Apply the automatic transition after a stage completion write.

    Marking a stage complete moves the task to `completed` once every stage
    is done, unless it is already `reviewed`. Marking one incomplete moves a
    `completed` task back to `in-progress`. Returns whether the status changed.
    """
    if completed:
        if task.status is TaskStatus.REVIEWED or not task.all_stages_completed():
            return False
        if task.status is TaskStatus.COMPLETED:
            return False
        task.status = TaskStatus.COMPLETED
        return True
    if task.status is TaskStatus.COMPLETED:
        task.status = TaskStatus.IN_PROGRESS
        return True
    return False
