"""Task lifecycle engine: load, authorize, transition, persist.

One call is one read-modify-write against a single task document. All checks
run against an in-memory copy before anything is stored, so a failing call
never leaves a partial effect behind.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from uuid import UUID, uuid4

from taskdesk.core.auth import ActorContext
from taskdesk.core.config import settings
from taskdesk.core.logging import get_logger
from taskdesk.core.time import utcnow
from taskdesk.schemas.tasks import (
    NoteRead,
    StageRead,
    StageWrite,
    TaskCreate,
    TaskRead,
    TaskUpdate,
    UserRef,
)
from taskdesk.services.lifecycle import notes, stages
from taskdesk.services.lifecycle.documents import (
    Stage,
    TaskPriority,
    TaskRecord,
    TaskStatus,
    invariant_violations,
)
from taskdesk.services.lifecycle.errors import (
    ForbiddenError,
    InvalidReferenceError,
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
)
from taskdesk.services.lifecycle.policy import Action, require
from taskdesk.services.lifecycle.repository import TaskRepository, UserSummary
from taskdesk.services.lifecycle.status import apply_explicit_status

logger = get_logger(__name__)

Clock = Callable[[], datetime]
MEMBER_UPDATABLE_FIELDS = frozenset({"status"})


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(UTC).replace(tzinfo=None)
    return value


def _require_text(value: str, field_name: str) -> str:
    text = value.strip()
    if not text:
        raise ValidationFailedError(f"{field_name} is required")
    return text


def _user_ref(user_id: UUID, users: dict[UUID, UserSummary]) -> UserRef:
    summary = users.get(user_id)
    if summary is None:
        return UserRef(id=user_id)
    return UserRef(id=summary.id, name=summary.name, email=summary.email)


def _as_read(task: TaskRecord, users: dict[UUID, UserSummary]) -> TaskRead:
    return TaskRead(
        id=task.id,
        title=task.title,
        description=task.description,
        assigned_to=_user_ref(task.assigned_to, users),
        assigned_by=_user_ref(task.assigned_by, users),
        priority=task.priority.value,
        status=task.status.value,
        due_date=task.due_date,
        stages=[
            StageRead(
                name=stage.name,
                completed=stage.completed,
                completed_at=stage.completed_at,
                approved_by=(
                    _user_ref(stage.approved_by, users)
                    if stage.approved_by is not None
                    else None
                ),
            )
            for stage in task.stages
        ],
        notes=[
            NoteRead(
                content=note.content,
                created_by=_user_ref(note.created_by, users),
                created_at=note.created_at,
            )
            for note in task.notes
        ],
        version=task.version,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _replacement_stages(entries: list[StageWrite], now: datetime) -> list[Stage]:
    replaced: list[Stage] = []
    for entry in entries:
        name = _require_text(entry.name, "stage name")
        replaced.append(
            Stage(
                name=name,
                completed=entry.completed,
                completed_at=now if entry.completed else None,
            ),
        )
    if not replaced:
        raise ValidationFailedError("A task needs at least one stage")
    return replaced


class TaskLifecycleEngine:
    """Expose lifecycle operations over a task repository."""

    def __init__(self, repository: TaskRepository, *, clock: Clock = utcnow) -> None:
        self.repository = repository
        self._clock = clock

    async def _load(self, task_id: UUID) -> TaskRecord:
        task = await self.repository.load_task(task_id)
        if task is None:
            raise NotFoundError()
        return task

    async def _store(self, task: TaskRecord) -> TaskRecord:
        problems = invariant_violations(task)
        if problems:
            raise InvalidStateError("; ".join(problems))
        return await self.repository.save_task(task)

    async def _resolve(self, task: TaskRecord) -> TaskRead:
        users = await self.repository.resolve_users(task.referenced_user_ids())
        return _as_read(task, users)

    async def _resolve_many(self, tasks: Iterable[TaskRecord]) -> list[TaskRead]:
        rows = list(tasks)
        ids: set[UUID] = set()
        for task in rows:
            ids.update(task.referenced_user_ids())
        users = await self.repository.resolve_users(ids)
        return [_as_read(task, users) for task in rows]

    async def create_task(self, actor: ActorContext, payload: TaskCreate) -> TaskRead:
        """Create a pending task with the given stages (admin only)."""
        require(actor, None, Action.CREATE_TASK)
        title = _require_text(payload.title, "title")
        description = _require_text(payload.description, "description")
        stage_names = [name.strip() for name in payload.stages]
        if not stage_names or any(not name for name in stage_names):
            raise ValidationFailedError("A task needs at least one named stage")
        if not await self.repository.user_exists(payload.assigned_to):
            raise InvalidReferenceError()

        now = self._clock()
        task = TaskRecord(
            id=uuid4(),
            title=title,
            description=description,
            assigned_to=payload.assigned_to,
            assigned_by=actor.id,
            priority=TaskPriority(payload.priority or settings.default_task_priority),
            status=TaskStatus.PENDING,
            due_date=_naive_utc(payload.due_date),
            stages=[Stage(name=name) for name in stage_names],
            created_at=now,
            updated_at=now,
        )
        stored = await self._store(task)
        logger.info(
            "task.lifecycle.created",
            extra={
                "task_id": str(stored.id),
                "actor_id": str(actor.id),
                "assigned_to": str(stored.assigned_to),
                "stage_count": len(stored.stages),
            },
        )
        return await self._resolve(stored)

    async def get_tasks(self, actor: ActorContext) -> list[TaskRead]:
        """List visible tasks, newest first."""
        if actor.is_admin:
            tasks = await self.repository.list_tasks()
        else:
            tasks = await self.repository.list_tasks(assigned_to=actor.id)
        return await self._resolve_many(tasks)

    async def get_task(self, actor: ActorContext, task_id: UUID) -> TaskRead:
        task = await self._load(task_id)
        require(actor, task, Action.VIEW_TASK)
        return await self._resolve(task)

    async def update_task(
        self,
        actor: ActorContext,
        task_id: UUID,
        patch: TaskUpdate,
    ) -> TaskRead:
        """Apply a partial update.

        Administrators may change any field, and their status writes are a
        direct set. Assignees may only change status; a member asking for
        `reviewed` gets a successful no-op.
        """
        task = await self._load(task_id)
        fields = set(patch.model_fields_set)
        now = self._clock()
        changed = False

        if actor.is_admin:
            require(actor, task, Action.UPDATE_FIELDS)
            if "assigned_to" in fields and patch.assigned_to != task.assigned_to:
                if not await self.repository.user_exists(patch.assigned_to):
                    raise InvalidReferenceError()
                task.assigned_to = patch.assigned_to
                changed = True
            if "title" in fields:
                task.title = _require_text(patch.title, "title")
                changed = True
            if "description" in fields:
                task.description = _require_text(patch.description, "description")
                changed = True
            if "priority" in fields:
                task.priority = TaskPriority(patch.priority)
                changed = True
            if "due_date" in fields:
                task.due_date = _naive_utc(patch.due_date)
                changed = True
            if "stages" in fields:
                task.stages = _replacement_stages(patch.stages or [], now)
                changed = True
        else:
            require(actor, task, Action.UPDATE_STATUS)
            disallowed = fields - MEMBER_UPDATABLE_FIELDS
            if disallowed:
                raise ForbiddenError(
                    "Only administrators can update "
                    + ", ".join(sorted(disallowed)),
                )

        if "status" in fields:
            previous_status = task.status
            if apply_explicit_status(task, TaskStatus(patch.status), actor):
                changed = True
                logger.info(
                    "task.lifecycle.status_changed",
                    extra={
                        "task_id": str(task.id),
                        "actor_id": str(actor.id),
                        "from_status": previous_status.value,
                        "to_status": task.status.value,
                    },
                )

        if not changed:
            return await self._resolve(task)
        task.updated_at = now
        stored = await self._store(task)
        logger.info(
            "task.lifecycle.updated",
            extra={
                "task_id": str(stored.id),
                "actor_id": str(actor.id),
                "fields": ",".join(sorted(fields)),
            },
        )
        return await self._resolve(stored)

    async def add_note(self, actor: ActorContext, task_id: UUID, content: str) -> TaskRead:
        text = notes.normalize_note_content(content)
        task = await self._load(task_id)
        notes.append_note(task, text, actor, self._clock())
        stored = await self._store(task)
        logger.info(
            "task.lifecycle.note_added",
            extra={
                "task_id": str(stored.id),
                "actor_id": str(actor.id),
                "note_count": len(stored.notes),
            },
        )
        return await self._resolve(stored)

    async def set_stage_completion(
        self,
        actor: ActorContext,
        task_id: UUID,
        stage_index: int,
        completed: bool,
    ) -> TaskRead:
        task = await self._load(task_id)
        transition = stages.set_completion(task, stage_index, completed, actor, self._clock())
        stored = await self._store(task)
        logger.info(
            "task.lifecycle.stage_completed" if completed else "task.lifecycle.stage_reopened",
            extra={
                "task_id": str(stored.id),
                "actor_id": str(actor.id),
                "stage_index": stage_index,
                "from_status": transition.previous_status.value,
                "to_status": transition.status.value,
            },
        )
        return await self._resolve(stored)

    async def approve_stage(
        self,
        actor: ActorContext,
        task_id: UUID,
        stage_index: int,
    ) -> TaskRead:
        task = await self._load(task_id)
        stages.approve(task, stage_index, actor, self._clock())
        stored = await self._store(task)
        logger.info(
            "task.lifecycle.stage_approved",
            extra={
                "task_id": str(stored.id),
                "actor_id": str(actor.id),
                "stage_index": stage_index,
            },
        )
        return await self._resolve(stored)

    async def delete_task(self, actor: ActorContext, task_id: UUID) -> None:
        """Hard-delete a task with all its stages and notes (admin only)."""
        require(actor, None, Action.DELETE_TASK)
        await self._load(task_id)
        if not await self.repository.delete_task(task_id):
            raise NotFoundError()
        logger.info(
            "task.lifecycle.deleted",
            extra={"task_id": str(task_id), "actor_id": str(actor.id)},
        )
