"""Persistence interface for task documents and its SQLModel implementation."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import delete, insert, update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from taskdesk.models.tasks import Task
from taskdesk.models.users import User
from taskdesk.services.lifecycle.documents import (
    Note,
    Stage,
    TaskPriority,
    TaskRecord,
    TaskStatus,
)
from taskdesk.services.lifecycle.errors import ConflictError


@dataclass(frozen=True)
class UserSummary:
    id: UUID
    name: str | None = None
    email: str | None = None


class TaskRepository(Protocol):
    """Collaborator the lifecycle engine loads and stores tasks through."""

    async def load_task(self, task_id: UUID) -> TaskRecord | None: ...

    async def save_task(self, task: TaskRecord) -> TaskRecord: ...

    async def delete_task(self, task_id: UUID) -> bool: ...

    async def list_tasks(self, *, assigned_to: UUID | None = None) -> list[TaskRecord]: ...

    async def user_exists(self, user_id: UUID) -> bool: ...

    async def resolve_users(self, user_ids: Iterable[UUID]) -> dict[UUID, UserSummary]: ...


def _dump_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _load_datetime(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    return datetime.fromisoformat(value)


def _load_uuid(value: object) -> UUID | None:
    if value is None or value == "":
        return None
    return value if isinstance(value, UUID) else UUID(str(value))


def _stage_to_json(stage: Stage) -> dict[str, Any]:
    return {
        "name": stage.name,
        "completed": stage.completed,
        "completed_at": _dump_datetime(stage.completed_at),
        "approved_by": str(stage.approved_by) if stage.approved_by is not None else None,
    }


def _stage_from_json(payload: dict[str, Any]) -> Stage:
    return Stage(
        name=str(payload.get("name", "")),
        completed=bool(payload.get("completed", False)),
        completed_at=_load_datetime(payload.get("completed_at")),
        approved_by=_load_uuid(payload.get("approved_by")),
    )


def _note_to_json(note: Note) -> dict[str, Any]:
    return {
        "content": note.content,
        "created_by": str(note.created_by),
        "created_at": _dump_datetime(note.created_at),
    }


def _note_from_json(payload: dict[str, Any]) -> Note:
    created_by = _load_uuid(payload.get("created_by"))
    created_at = _load_datetime(payload.get("created_at"))
    if created_by is None or created_at is None:
        msg = "stored note is missing its author or timestamp"
        raise ValueError(msg)
    return Note(
        content=str(payload.get("content", "")),
        created_by=created_by,
        created_at=created_at,
    )


def _to_record(row: Task) -> TaskRecord:
    return TaskRecord(
        id=row.id,
        title=row.title,
        description=row.description,
        assigned_to=row.assigned_to,
        assigned_by=row.assigned_by,
        priority=TaskPriority(row.priority),
        status=TaskStatus(row.status),
        due_date=row.due_date,
        stages=[_stage_from_json(item) for item in row.stages or []],
        notes=[_note_from_json(item) for item in row.notes or []],
        version=row.version,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_values(task: TaskRecord) -> dict[str, Any]:
    return {
        "title": task.title,
        "description": task.description,
        "assigned_to": task.assigned_to,
        "assigned_by": task.assigned_by,
        "priority": task.priority.value,
        "status": task.status.value,
        "due_date": task.due_date,
        "stages": [_stage_to_json(stage) for stage in task.stages],
        "notes": [_note_to_json(note) for note in task.notes],
        "updated_at": task.updated_at,
    }


class SqlTaskRepository:
    """Store each task as a single row so every save is atomic per document."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def load_task(self, task_id: UUID) -> TaskRecord | None:
        statement = (
            select(Task)
            .where(col(Task.id) == task_id)
            .execution_options(populate_existing=True)
        )
        row = (await self.session.exec(statement)).first()
        return _to_record(row) if row is not None else None

    async def save_task(self, task: TaskRecord) -> TaskRecord:
        """Insert a new task or update an existing one at its loaded version."""
        values = _row_values(task)
        if task.version == 0:
            await self.session.execute(
                insert(Task).values(
                    id=task.id,
                    created_at=task.created_at,
                    version=1,
                    **values,
                ),
            )
        else:
            result = await self.session.execute(
                update(Task)
                .where(col(Task.id) == task.id)
                .where(col(Task.version) == task.version)
                .values(version=task.version + 1, **values),
            )
            if result.rowcount != 1:
                await self.session.rollback()
                raise ConflictError()
        await self.session.commit()
        stored = await self.load_task(task.id)
        if stored is None:
            raise ConflictError()
        return stored

    async def delete_task(self, task_id: UUID) -> bool:
        result = await self.session.execute(delete(Task).where(col(Task.id) == task_id))
        await self.session.commit()
        return result.rowcount > 0

    async def list_tasks(self, *, assigned_to: UUID | None = None) -> list[TaskRecord]:
        statement = select(Task).execution_options(populate_existing=True)
        if assigned_to is not None:
            statement = statement.where(col(Task.assigned_to) == assigned_to)
        statement = statement.order_by(col(Task.created_at).desc())
        rows = (await self.session.exec(statement)).all()
        return [_to_record(row) for row in rows]

    async def user_exists(self, user_id: UUID) -> bool:
        statement = select(User.id).where(col(User.id) == user_id)
        return (await self.session.exec(statement)).first() is not None

    async def resolve_users(self, user_ids: Iterable[UUID]) -> dict[UUID, UserSummary]:
        ids = set(user_ids)
        if not ids:
            return {}
        statement = select(User).where(col(User.id).in_(ids))
        rows = (await self.session.exec(statement)).all()
        return {row.id: UserSummary(id=row.id, name=row.name, email=row.email) for row in rows}
