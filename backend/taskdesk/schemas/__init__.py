"""Public schema exports shared across API route modules."""

from taskdesk.schemas.tasks import (
    NoteCreate,
    NoteRead,
    StageCompletionUpdate,
    StageRead,
    StageWrite,
    TaskCreate,
    TaskRead,
    TaskUpdate,
    UserRef,
)

__all__ = [
    "NoteCreate",
    "NoteRead",
    "StageCompletionUpdate",
    "StageRead",
    "StageWrite",
    "TaskCreate",
    "TaskRead",
    "TaskUpdate",
    "UserRef",
]
