"""Typed failures raised by lifecycle operations."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure kinds callers map to transport-level responses."""

    NOT_FOUND = "not_found"
    STAGE_NOT_FOUND = "stage_not_found"
    FORBIDDEN = "forbidden"
    VALIDATION_ERROR = "validation_error"
    INVALID_REFERENCE = "invalid_reference"
    INVALID_STATE = "invalid_state"
    CONFLICT = "conflict"


class LifecycleError(Exception):
    """Base class for recoverable lifecycle failures."""

    kind: ErrorKind = ErrorKind.VALIDATION_ERROR
    default_message = "Task operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_detail(self) -> dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


class NotFoundError(LifecycleError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Task not found"


class StageNotFoundError(NotFoundError):
    kind = ErrorKind.STAGE_NOT_FOUND
    default_message = "Stage not found"


class ForbiddenError(LifecycleError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Not authorized to perform this action"


class ValidationFailedError(LifecycleError):
    kind = ErrorKind.VALIDATION_ERROR
    default_message = "Invalid task data"


class InvalidReferenceError(LifecycleError):
    kind = ErrorKind.INVALID_REFERENCE
    default_message = "Assigned user not found"


class InvalidStateError(LifecycleError):
    kind = ErrorKind.INVALID_STATE
    default_message = "Operation not allowed in the current state"


class ConflictError(LifecycleError):
    """Raised when a task changed between load and save."""

    kind = ErrorKind.CONFLICT
    default_message = "Task was modified concurrently; reload and retry"
