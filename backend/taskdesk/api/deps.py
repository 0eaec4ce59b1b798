"""Shared FastAPI dependencies for task routes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends

from taskdesk.db.session import get_session
from taskdesk.services.lifecycle import SqlTaskRepository, TaskLifecycleEngine

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

SESSION_DEP = Depends(get_session)


def get_task_engine(session: AsyncSession = SESSION_DEP) -> TaskLifecycleEngine:
    """Build a request-scoped lifecycle engine over the SQL repository."""
    return TaskLifecycleEngine(SqlTaskRepository(session))
