"""Task lifecycle: authorization policy, stage tracker, status machine, engine."""

from taskdesk.services.lifecycle.engine import TaskLifecycleEngine
from taskdesk.services.lifecycle.errors import (
    ConflictError,
    ErrorKind,
    ForbiddenError,
    InvalidReferenceError,
    InvalidStateError,
    LifecycleError,
    NotFoundError,
    StageNotFoundError,
    ValidationFailedError,
)
from taskdesk.services.lifecycle.repository import SqlTaskRepository, TaskRepository

__all__ = [
    "ConflictError",
    "ErrorKind",
    "ForbiddenError",
    "InvalidReferenceError",
    "InvalidStateError",
    "LifecycleError",
    "NotFoundError",
    "SqlTaskRepository",
    "StageNotFoundError",
    "TaskLifecycleEngine",
    "TaskRepository",
    "ValidationFailedError",
]
