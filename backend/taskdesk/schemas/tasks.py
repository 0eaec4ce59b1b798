"""Schemas for task lifecycle API payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Self
from uuid import UUID

from pydantic import field_validator, model_validator
from sqlmodel import Field, SQLModel

from taskdesk.schemas.common import NonEmptyStr

TaskStatusValue = Literal["pending", "in-progress", "completed", "reviewed"]
TaskPriorityValue = Literal["low", "medium", "high"]
# Keep these symbols as runtime globals so Pydantic can resolve
# deferred annotations reliably.
RUNTIME_ANNOTATION_TYPES = (datetime, UUID, NonEmptyStr)


def _stage_name(raw: object) -> str | None:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict):
        name = raw.get("name")
        return name if isinstance(name, str) else None
    return None


class StageWrite(SQLModel):
    """Stage entry supplied when an administrator replaces a task's stages."""

    name: NonEmptyStr
    completed: bool = False


class TaskCreate(SQLModel):
    """Payload for creating a task."""

    title: NonEmptyStr
    description: NonEmptyStr
    assigned_to: UUID
    priority: TaskPriorityValue | None = None
    due_date: datetime
    stages: list[str] = Field(default_factory=list)

    @field_validator("stages", mode="before")
    @classmethod
    def drop_blank_stages(cls, value: object) -> list[str]:
        """Accept names or `{"name": ...}` objects and drop blank entries."""
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("stages must be a list")
        names: list[str] = []
        for raw in value:
            name = _stage_name(raw)
            if name is None:
                raise ValueError("stage entries must be names or objects with a name")
            cleaned = name.strip()
            if cleaned:
                names.append(cleaned)
        return names


class TaskUpdate(SQLModel):
    """Payload for partial task updates; omitted fields are left untouched."""

    title: NonEmptyStr | None = None
    description: NonEmptyStr | None = None
    assigned_to: UUID | None = None
    priority: TaskPriorityValue | None = None
    due_date: datetime | None = None
    status: TaskStatusValue | None = None
    stages: list[StageWrite] | None = None

    @field_validator("stages", mode="before")
    @classmethod
    def drop_blank_stages(cls, value: object) -> object:
        if not isinstance(value, list):
            return value
        kept: list[object] = []
        for raw in value:
            name = _stage_name(raw)
            if name is not None and not name.strip():
                continue
            kept.append({"name": raw} if isinstance(raw, str) else raw)
        return kept

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> Self:
        """Ensure explicitly supplied fields are not null."""
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class StageCompletionUpdate(SQLModel):
    completed: bool


class NoteCreate(SQLModel):
    content: str = ""


class UserRef(SQLModel):
    """Identity reference rendered in display form."""

    id: UUID
    name: str | None = None
    email: str | None = None


class StageRead(SQLModel):
    name: str
    completed: bool
    completed_at: datetime | None = None
    approved_by: UserRef | None = None


class NoteRead(SQLModel):
    content: str
    created_by: UserRef
    created_at: datetime


class TaskRead(SQLModel):
    """Task payload returned from read and mutation endpoints."""

    id: UUID
    title: str
    description: str
    assigned_to: UserRef
    assigned_by: UserRef
    priority: TaskPriorityValue
    status: TaskStatusValue
    due_date: datetime
    stages: list[StageRead] = Field(default_factory=list)
    notes: list[NoteRead] = Field(default_factory=list)
    version: int
    created_at: datetime
    updated_at: datetime
