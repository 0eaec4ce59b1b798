# ruff: noqa: S101
from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from taskdesk.core.auth import ActorContext, Role, decode_identity_token, get_actor
from taskdesk.core.config import settings


def _token(claims: dict[str, object], secret: str | None = None) -> str:
    return jwt.encode(claims, secret or settings.jwt_secret, algorithm=settings.jwt_algorithm)


def test_decode_identity_token_returns_claims() -> None:
    user_id = uuid4()
    claims = decode_identity_token(_token({"sub": str(user_id), "role": "admin"}))
    assert claims.sub == user_id
    assert claims.role is Role.ADMIN


@pytest.mark.parametrize(
    "claims",
    [
        {"sub": "not-a-uuid", "role": "member"},
        {"sub": str(uuid4()), "role": "superuser"},
        {"role": "member"},
    ],
)
def test_decode_identity_token_rejects_bad_claims(claims: dict[str, object]) -> None:
    with pytest.raises(HTTPException) as exc:
        decode_identity_token(_token(claims))
    assert exc.value.status_code == 401


def test_decode_identity_token_rejects_wrong_signature() -> None:
    token = _token({"sub": str(uuid4()), "role": "admin"}, secret="x" * 48)
    with pytest.raises(HTTPException) as exc:
        decode_identity_token(token)
    assert exc.value.status_code == 401


def test_decode_identity_token_rejects_expired_token() -> None:
    expired = datetime.now(UTC) - timedelta(hours=1)
    token = _token({"sub": str(uuid4()), "role": "member", "exp": expired})
    with pytest.raises(HTTPException):
        decode_identity_token(token)


@pytest.mark.asyncio
async def test_get_actor_builds_context() -> None:
    user_id = uuid4()
    credentials = HTTPAuthorizationCredentials(
        scheme="Bearer",
        credentials=_token({"sub": str(user_id), "role": "member"}),
    )
    actor = await get_actor(credentials)
    assert actor == ActorContext(id=user_id, role=Role.MEMBER)
    assert actor.is_admin is False


@pytest.mark.asyncio
async def test_get_actor_requires_credentials() -> None:
    with pytest.raises(HTTPException) as exc:
        await get_actor(None)
    assert exc.value.status_code == 401
