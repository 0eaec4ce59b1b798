"""Identity claim resolution from signed bearer tokens."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ValidationError

from taskdesk.core.config import settings
from taskdesk.core.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)


class Role(str, Enum):
    """Closed set of actor roles."""

    ADMIN = "admin"
    MEMBER = "member"


class IdentityClaims(BaseModel):
    """JWT claims payload shape required from upstream-issued tokens."""

    sub: UUID
    role: Role


@dataclass(frozen=True)
class ActorContext:
    """Identity claim under which a lifecycle operation is attempted."""

    id: UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def decode_identity_token(token: str) -> IdentityClaims:
    """Verify a bearer token and return its identity claims.

    Raises `HTTPException(401)` for any signature, expiry or shape problem.
    """
    options = {"require": ["sub"]}
    try:
        decoded = jwt.decode(
            token,
            key=settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer or None,
            options=options,
            leeway=settings.jwt_leeway,
        )
    except jwt.PyJWTError as exc:
        logger.warning("auth.token.rejected", extra={"reason": exc.__class__.__name__})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc
    try:
        return IdentityClaims.model_validate(decoded)
    except ValidationError as exc:
        logger.warning("auth.token.rejected", extra={"reason": "invalid_claims"})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc


async def get_actor(
    credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP,
) -> ActorContext:
    """Resolve the required actor context from the bearer token."""
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    claims = decode_identity_token(credentials.credentials)
    return ActorContext(id=claims.sub, role=claims.role)
