"""In-memory task aggregate operated on by the lifecycle engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    REVIEWED = "reviewed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class Stage:
    """One completable milestone, addressed by its position in the task."""

    name: str
    completed: bool = False
    completed_at: datetime | None = None
    approved_by: UUID | None = None


@dataclass(frozen=True)
class Note:
    content: str
    created_by: UUID
    created_at: datetime


@dataclass
class TaskRecord:
    """Whole task document as loaded from and saved to the repository.

    `version` is 0 until the task is first stored; the repository bumps it on
    every successful save and refuses stale writes.
    """

    id: UUID
    title: str
    description: str
    assigned_to: UUID
    assigned_by: UUID
    priority: TaskPriority
    status: TaskStatus
    due_date: datetime
    stages: list[Stage]
    created_at: datetime
    updated_at: datetime
    notes: list[Note] = field(default_factory=list)
    version: int = 0

    def all_stages_completed(self) -> bool:
        return bool(self.stages) and all(stage.completed for stage in self.stages)

    def referenced_user_ids(self) -> set[UUID]:
        ids = {self.assigned_to, self.assigned_by}
        ids.update(note.created_by for note in self.notes)
        ids.update(stage.approved_by for stage in self.stages if stage.approved_by is not None)
        return ids


def invariant_violations(task: TaskRecord) -> list[str]:
    """Return structural invariant breaches of a task (empty when consistent)."""
    problems: list[str] = []
    if not task.stages:
        problems.append("task must have at least one stage")
    for index, stage in enumerate(task.stages):
        if not stage.name.strip():
            problems.append(f"stage {index} has an empty name")
        if stage.completed != (stage.completed_at is not None):
            problems.append(f"stage {index} completed_at must be set iff completed")
        if stage.approved_by is not None and not stage.completed:
            problems.append(f"stage {index} is approved but not completed")
    return problems
