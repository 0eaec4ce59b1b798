"""Task lifecycle API: CRUD, notes, stage completion and approval."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from taskdesk.api.deps import get_task_engine
from taskdesk.core.auth import ActorContext, get_actor
from taskdesk.schemas.tasks import (
    NoteCreate,
    StageCompletionUpdate,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)
from taskdesk.services.lifecycle import TaskLifecycleEngine

router = APIRouter(prefix="/tasks", tags=["tasks"])
ENGINE_DEP = Depends(get_task_engine)
ACTOR_DEP = Depends(get_actor)


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    engine: TaskLifecycleEngine = ENGINE_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> list[TaskRead]:
    """List all tasks for admins, assigned tasks otherwise; newest first."""
    return await engine.get_tasks(actor)


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    engine: TaskLifecycleEngine = ENGINE_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> TaskRead:
    return await engine.create_task(actor, payload)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: UUID,
    engine: TaskLifecycleEngine = ENGINE_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> TaskRead:
    return await engine.get_task(actor, task_id)


@router.api_route("/{task_id}", methods=["PATCH", "PUT"], response_model=TaskRead)
async def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    engine: TaskLifecycleEngine = ENGINE_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> TaskRead:
    """Partially update a task; members may only change its status."""
    return await engine.update_task(actor, task_id, payload)


@router.delete("/{task_id}")
async def delete_task(
    task_id: UUID,
    engine: TaskLifecycleEngine = ENGINE_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> dict[str, bool]:
    await engine.delete_task(actor, task_id)
    return {"ok": True}


@router.post("/{task_id}/notes", response_model=TaskRead)
async def add_task_note(
    task_id: UUID,
    payload: NoteCreate,
    engine: TaskLifecycleEngine = ENGINE_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> TaskRead:
    return await engine.add_note(actor, task_id, payload.content)


@router.put("/{task_id}/stages/{stage_index}", response_model=TaskRead)
async def update_task_stage(
    task_id: UUID,
    stage_index: int,
    payload: StageCompletionUpdate,
    engine: TaskLifecycleEngine = ENGINE_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> TaskRead:
    """Mark one stage complete or incomplete by its position."""
    return await engine.set_stage_completion(actor, task_id, stage_index, payload.completed)


@router.put("/{task_id}/stages/{stage_index}/approve", response_model=TaskRead)
async def approve_task_stage(
    task_id: UUID,
    stage_index: int,
    engine: TaskLifecycleEngine = ENGINE_DEP,
    actor: ActorContext = ACTOR_DEP,
) -> TaskRead:
    return await engine.approve_stage(actor, task_id, stage_index)
