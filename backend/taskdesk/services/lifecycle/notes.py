"""Append-only note log attached to a task."""

from __future__ import annotations

from datetime import datetime

from taskdesk.core.auth import ActorContext
from taskdesk.services.lifecycle.documents import Note, TaskRecord
from taskdesk.services.lifecycle.errors import ValidationFailedError
from taskdesk.services.lifecycle.policy import Action, require


def normalize_note_content(content: str | None) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationFailedError("Note content is required")
    return text


def append_note(
    task: TaskRecord,
    content: str,
    actor: ActorContext,
    now: datetime,
) -> Note:
    text = normalize_note_content(content)
    require(actor, task, Action.ADD_NOTE)
    note = Note(content=text, created_by=actor.id, created_at=now)
    task.notes.append(note)
    task.updated_at = now
    return note
