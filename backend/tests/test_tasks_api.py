# ruff: noqa: S101
from __future__ import annotations

from collections.abc import AsyncIterator
from uuid import UUID, uuid4

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from taskdesk.core.config import settings
from taskdesk.db.session import get_session
from taskdesk.main import create_app
from taskdesk.models.users import User


async def _create_schema(engine: AsyncEngine) -> None:
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)


def _bearer(user_id: UUID, role: str) -> dict[str, str]:
    token = jwt.encode(
        {"sub": str(user_id), "role": role},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.asyncio
async def test_task_lifecycle_over_http() -> None:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    await _create_schema(engine)
    session_maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    admin = User(id=uuid4(), name="Ada Admin", email="ada@example.com", role="admin")
    member = User(id=uuid4(), name="Mel Member", email="mel@example.com", role="member")
    outsider = User(id=uuid4(), name="Oscar Other", email="oscar@example.com", role="member")
    async with session_maker() as session:
        session.add(admin)
        session.add(member)
        session.add(outsider)
        await session.commit()

    app = create_app()

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    as_admin = _bearer(admin.id, "admin")
    as_member = _bearer(member.id, "member")
    as_outsider = _bearer(outsider.id, "member")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        unauthenticated = await client.get("/api/v1/tasks")
        assert unauthenticated.status_code == 401

        forbidden_create = await client.post(
            "/api/v1/tasks",
            headers=as_member,
            json={
                "title": "Nope",
                "description": "Members cannot create",
                "assigned_to": str(member.id),
                "due_date": "2026-04-01T17:00:00Z",
                "stages": ["one"],
            },
        )
        assert forbidden_create.status_code == 403
        assert forbidden_create.json()["detail"]["kind"] == "forbidden"

        missing_assignee = await client.post(
            "/api/v1/tasks",
            headers=as_admin,
            json={
                "title": "Orphan",
                "description": "Nobody to do it",
                "assigned_to": str(uuid4()),
                "due_date": "2026-04-01T17:00:00Z",
                "stages": ["one"],
            },
        )
        assert missing_assignee.status_code == 400
        assert missing_assignee.json()["detail"]["kind"] == "invalid_reference"

        blank_stages = await client.post(
            "/api/v1/tasks",
            headers=as_admin,
            json={
                "title": "No stages",
                "description": "Only blanks",
                "assigned_to": str(member.id),
                "due_date": "2026-04-01T17:00:00Z",
                "stages": [{"name": " "}, ""],
            },
        )
        assert blank_stages.status_code == 422

        created = await client.post(
            "/api/v1/tasks",
            headers=as_admin,
            json={
                "title": "Prepare release notes",
                "description": "Collect changes",
                "assigned_to": str(member.id),
                "due_date": "2026-04-01T17:00:00Z",
                "stages": [{"name": "draft"}, {"name": "  "}, "review"],
            },
        )
        assert created.status_code == 201
        body = created.json()
        task_id = body["id"]
        assert body["status"] == "pending"
        assert body["priority"] == "medium"
        assert [stage["name"] for stage in body["stages"]] == ["draft", "review"]
        assert body["assigned_to"]["email"] == "mel@example.com"

        listed = await client.get("/api/v1/tasks", headers=as_outsider)
        assert listed.status_code == 200
        assert listed.json() == []

        hidden = await client.get(f"/api/v1/tasks/{task_id}", headers=as_outsider)
        assert hidden.status_code == 403

        bad_field = await client.patch(
            f"/api/v1/tasks/{task_id}",
            headers=as_member,
            json={"title": "Renamed by member"},
        )
        assert bad_field.status_code == 403

        quirk = await client.put(
            f"/api/v1/tasks/{task_id}",
            headers=as_member,
            json={"status": "reviewed"},
        )
        assert quirk.status_code == 200
        assert quirk.json()["status"] == "pending"

        first = await client.put(
            f"/api/v1/tasks/{task_id}/stages/0",
            headers=as_member,
            json={"completed": True},
        )
        assert first.status_code == 200
        assert first.json()["status"] == "pending"

        missing_stage = await client.put(
            f"/api/v1/tasks/{task_id}/stages/7",
            headers=as_member,
            json={"completed": True},
        )
        assert missing_stage.status_code == 404
        assert missing_stage.json()["detail"]["kind"] == "stage_not_found"

        premature = await client.put(
            f"/api/v1/tasks/{task_id}/stages/1/approve",
            headers=as_admin,
        )
        assert premature.status_code == 400
        assert premature.json()["detail"]["kind"] == "invalid_state"

        second = await client.put(
            f"/api/v1/tasks/{task_id}/stages/1",
            headers=as_member,
            json={"completed": True},
        )
        assert second.json()["status"] == "completed"

        member_approval = await client.put(
            f"/api/v1/tasks/{task_id}/stages/0/approve",
            headers=as_member,
        )
        assert member_approval.status_code == 403

        approved = await client.put(
            f"/api/v1/tasks/{task_id}/stages/0/approve",
            headers=as_admin,
        )
        assert approved.status_code == 200
        assert approved.json()["stages"][0]["approved_by"]["name"] == "Ada Admin"

        empty_note = await client.post(
            f"/api/v1/tasks/{task_id}/notes",
            headers=as_member,
            json={"content": "   "},
        )
        assert empty_note.status_code == 422
        assert empty_note.json()["detail"]["kind"] == "validation_error"

        noted = await client.post(
            f"/api/v1/tasks/{task_id}/notes",
            headers=as_member,
            json={"content": "Both stages done"},
        )
        assert noted.status_code == 200
        assert noted.json()["notes"][0]["created_by"]["name"] == "Mel Member"

        reviewed = await client.patch(
            f"/api/v1/tasks/{task_id}",
            headers=as_admin,
            json={"status": "reviewed"},
        )
        assert reviewed.json()["status"] == "reviewed"

        reopened = await client.put(
            f"/api/v1/tasks/{task_id}/stages/1",
            headers=as_member,
            json={"completed": False},
        )
        assert reopened.json()["status"] == "reviewed"
        assert reopened.json()["stages"][1]["completed_at"] is None

        member_delete = await client.delete(f"/api/v1/tasks/{task_id}", headers=as_member)
        assert member_delete.status_code == 403

        deleted = await client.delete(f"/api/v1/tasks/{task_id}", headers=as_admin)
        assert deleted.status_code == 200
        assert deleted.json() == {"ok": True}

        gone = await client.delete(f"/api/v1/tasks/{task_id}", headers=as_admin)
        assert gone.status_code == 404
        assert gone.json()["detail"]["kind"] == "not_found"
    await engine.dispose()


@pytest.mark.asyncio
async def test_update_rejects_explicit_null_fields() -> None:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    await _create_schema(engine)
    session_maker = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    app = create_app()

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.patch(
            f"/api/v1/tasks/{uuid4()}",
            headers=_bearer(uuid4(), "admin"),
            json={"status": None},
        )
    assert response.status_code == 422
    await engine.dispose()
