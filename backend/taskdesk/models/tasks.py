"""Task rows holding stages and notes as embedded JSON documents."""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

from pydantic import NaiveDatetime
from sqlalchemy import JSON, Column, Text
from sqlmodel import Field, SQLModel

from taskdesk.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (NaiveDatetime,)


class Task(SQLModel, table=True):
    """Assignable work item; one row is one atomically stored task document."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str
    description: str = Field(sa_column=Column(Text, nullable=False))
    assigned_to: UUID = Field(foreign_key="users.id", index=True)
    assigned_by: UUID = Field(foreign_key="users.id", index=True)
    priority: str = Field(default="medium", index=True)
    status: str = Field(default="pending", index=True)
    due_date: NaiveDatetime
    stages: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    notes: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    version: int = Field(default=1)
    created_at: NaiveDatetime = Field(default_factory=utcnow, index=True)
    updated_at: NaiveDatetime = Field(default_factory=utcnow)
