"""
Authentication Dependencies

Resolves the caller's identity for FastAPI endpoints. This module answers
"who is calling"; whether they may act is decided by the authorization policy.

The session token is accepted from either:
- Authorization: Bearer <token>
- the session cookie set by POST /api/login

Claims are never trusted on their own: the user row is reloaded on every
request so deactivation and role changes take effect immediately.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.database import get_db
from admissions_portal.core.errors import AccountInactiveError, NotAuthenticatedError
from admissions_portal.core.security import decode_session_token
from admissions_portal.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=False,
    description="Session token for authentication",
)


@dataclass(frozen=True)
class SessionIdentity:
    """
    The authenticated caller, as seen by services and the policy.

    Attributes:
        id: User id
        role: Current role (reloaded from the database)
        active: Whether the account may act
        username: Email address
    """

    id: int
    role: UserRole
    active: bool
    username: str

    @classmethod
    def from_user(cls, user: User) -> "SessionIdentity":
        return cls(id=user.id, role=user.role, active=user.active, username=user.username)

    @property
    def is_staff(self) -> bool:
        return self.role.is_staff

    def __str__(self) -> str:
        return f"SessionIdentity(id={self.id}, role={self.role.value})"


def _extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials and credentials.credentials:
        return credentials.credentials
    cookie_name = request.app.state.context.settings.session_cookie_name
    return request.cookies.get(cookie_name)


async def resolve_identity(db: AsyncSession, token: str, secret: str) -> SessionIdentity | None:
    """
    Turn a session token into a live identity.

    Returns:
        The identity, or None when the token is invalid or the user no longer exists

    Raises:
        AccountInactiveError: The user exists but has been deactivated
    """
    payload = decode_session_token(token, secret)
    if payload is None:
        return None

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Session token carries a malformed subject")
        return None

    user = await db.get(User, user_id)
    if user is None:
        return None
    if not user.active:
        raise AccountInactiveError()

    return SessionIdentity.from_user(user)


async def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> SessionIdentity:
    """
    FastAPI dependency that requires an authenticated, active caller.

    Usage:
        @router.get("/applications")
        async def list_applications(
            identity: SessionIdentity = Depends(get_current_identity),
        ): ...

    Raises:
        NotAuthenticatedError: No token, or the token is invalid or expired
        AccountInactiveError: The account was deactivated after the token was issued
    """
    token = _extract_token(request, credentials)
    if not token:
        raise NotAuthenticatedError()

    secret = request.app.state.context.settings.session_secret
    identity = await resolve_identity(db, token, secret)
    if identity is None:
        raise NotAuthenticatedError()

    logger.debug(f"Authenticated {identity}")
    return identity


__all__ = [
    "SessionIdentity",
    "get_current_identity",
    "resolve_identity",
]
