"""User directory rows referenced by task assignments."""

from __future__ import annotations

from uuid import UUID, uuid4

from pydantic import NaiveDatetime
from sqlmodel import Field, SQLModel

from taskdesk.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (NaiveDatetime,)


class User(SQLModel, table=True):
    """Known identity; credentials are managed outside this service."""

    __tablename__ = "users"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    role: str = Field(default="member", index=True)
    created_at: NaiveDatetime = Field(default_factory=utcnow)
