"""Role-based authorization policy for task lifecycle actions.

Every decision goes through `authorize`, which resolves the actor's relation
to the task (admin, assignee) and checks it against the grant table below.
The policy is pure: no I/O, no mutation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from taskdesk.core.auth import ActorContext, Role
from taskdesk.services.lifecycle.documents import TaskRecord, TaskStatus
from taskdesk.services.lifecycle.errors import ForbiddenError


class Action(str, Enum):
    VIEW_TASK = "view_task"
    CREATE_TASK = "create_task"
    UPDATE_FIELDS = "update_fields"
    UPDATE_STATUS = "update_status"
    ADD_NOTE = "add_note"
    TOGGLE_STAGE = "toggle_stage"
    APPROVE_STAGE = "approve_stage"
    DELETE_TASK = "delete_task"


class Grant(str, Enum):
    ADMIN = "admin"
    ASSIGNEE = "assignee"


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: str | None = None


_ADMIN_ONLY = frozenset({Grant.ADMIN})
_ADMIN_OR_ASSIGNEE = frozenset({Grant.ADMIN, Grant.ASSIGNEE})

_GRANTS: dict[Action, frozenset[Grant]] = {
    Action.VIEW_TASK: _ADMIN_OR_ASSIGNEE,
    Action.CREATE_TASK: _ADMIN_ONLY,
    Action.UPDATE_FIELDS: _ADMIN_ONLY,
    Action.UPDATE_STATUS: _ADMIN_OR_ASSIGNEE,
    Action.ADD_NOTE: _ADMIN_OR_ASSIGNEE,
    Action.TOGGLE_STAGE: _ADMIN_OR_ASSIGNEE,
    Action.APPROVE_STAGE: _ADMIN_ONLY,
    Action.DELETE_TASK: _ADMIN_ONLY,
}

_DENIAL_REASONS: dict[Action, str] = {
    Action.VIEW_TASK: "Not authorized to access this task",
    Action.CREATE_TASK: "Only administrators can create tasks",
    Action.UPDATE_FIELDS: "Only administrators can update task details",
    Action.UPDATE_STATUS: "Not authorized to update this task",
    Action.ADD_NOTE: "Not authorized to add notes to this task",
    Action.TOGGLE_STAGE: "Not authorized to update this task stage",
    Action.APPROVE_STAGE: "Only administrators can approve stages",
    Action.DELETE_TASK: "Only administrators can delete tasks",
}

_ROLE_GRANTS: dict[Role, frozenset[Grant]] = {
    Role.ADMIN: frozenset({Grant.ADMIN}),
    Role.MEMBER: frozenset(),
}


def _actor_grants(actor: ActorContext, task: TaskRecord | None) -> frozenset[Grant]:
    grants = set(_ROLE_GRANTS[actor.role])
    if task is not None and task.assigned_to == actor.id:
        grants.add(Grant.ASSIGNEE)
    return frozenset(grants)


def authorize(actor: ActorContext, task: TaskRecord | None, action: Action) -> PolicyDecision:
    """Decide whether `actor` may perform `action` on `task`.

    `task` is `None` for actions that do not target an existing task.
    """
    if _actor_grants(actor, task) & _GRANTS[action]:
        return PolicyDecision(allowed=True)
    return PolicyDecision(allowed=False, reason=_DENIAL_REASONS[action])


def require(actor: ActorContext, task: TaskRecord | None, action: Action) -> None:
    """Raise `ForbiddenError` unless the policy allows the action."""
    decision = authorize(actor, task, action)
    if not decision.allowed:
        raise ForbiddenError(decision.reason)


def effective_status_request(
    actor: ActorContext,
    current: TaskStatus,
    requested: TaskStatus,
) -> TaskStatus:
    """Return the status an actor's request actually resolves to.

    Members asking for `reviewed` keep the current status instead of being
    refused, so existing clients that send it still get a success.
    """
    if requested is TaskStatus.REVIEWED and not actor.is_admin:
        return current
    return requested
