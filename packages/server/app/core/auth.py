"""
Caller identity and tenancy checks.

Identity comes from the external identity provider as a signed JWT carrying
``sub`` (user id) and ``org_id`` (active organization). It is accepted either
as ``Authorization: Bearer <token>`` or in the ``cb_session`` cookie.

Every org-scoped route resolves ``{subdomain}`` through the tenant directory
and requires the caller's active organization to own it. The resulting
``Identity`` is passed explicitly into the service layer.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from app.core.config import get_settings
from app.core.errors import AccessDenied, NotFound, Unauthorized
from app.core.tenancy import get_subdomain_data

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "cb_session"

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: str,
    org_id: Optional[str],
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed session token. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": user_id,
        "org_id": org_id,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class Identity:
    """An authenticated user acting inside one organization."""

    def __init__(self, user_id: str, org_id: str):
        self.user_id = user_id
        self.org_id = org_id

    def __repr__(self) -> str:
        return f"Identity(user_id={self.user_id!r}, org_id={self.org_id!r})"


def identity_from_token(token: str) -> Identity:
    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise Unauthorized("Invalid or expired session")

    user_id = payload.get("sub")
    org_id = payload.get("org_id")
    if not user_id:
        raise Unauthorized("Session has no subject")
    if not org_id:
        raise Unauthorized("No active organization")
    return Identity(user_id=user_id, org_id=org_id)


async def get_identity(
    request: Request,
    authorization: Optional[str] = Depends(api_key_header),
) -> Identity:
    """Authenticate the caller from a bearer token or the session cookie."""
    if authorization and authorization.startswith("Bearer "):
        return identity_from_token(authorization[7:].strip())

    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return identity_from_token(token)

    raise Unauthorized("Authentication required")


async def require_org_member(
    subdomain: str,
    identity: Identity = Depends(get_identity),
) -> Identity:
    """The caller's active organization must own the addressed workspace."""
    data = await get_subdomain_data(subdomain)
    if data is None:
        raise NotFound("Organization not found")
    if data.organization_id != identity.org_id:
        log.warning(
            "auth.org_mismatch",
            subdomain=subdomain,
            user_id=identity.user_id,
            active_org=identity.org_id,
        )
        raise AccessDenied("Not a member of this organization")

    structlog.contextvars.bind_contextvars(org_id=identity.org_id, user_id=identity.user_id)
    return identity
