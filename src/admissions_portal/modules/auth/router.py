"""
Authentication Router

Endpoints:
- POST /login - Verify credentials, set the session cookie, return the token
- POST /register - Self-register as an agent or student
- POST /logout - Clear the session cookie
- GET /user - The current identity

Login attempts are rate limited per client IP.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.auth import SessionIdentity, get_current_identity
from admissions_portal.core.config import Settings
from admissions_portal.core.context import get_notifications, get_rate_limiter, get_settings_dep
from admissions_portal.core.database import get_db
from admissions_portal.core.errors import NotAuthenticatedError
from admissions_portal.core.rate_limit import RateLimiter, client_ip
from admissions_portal.modules.auth import service
from admissions_portal.modules.auth.schemas import LoginRequest, LoginResponse, RegisterRequest
from admissions_portal.modules.notifications import NotificationQueue
from admissions_portal.modules.users.repository import UserRepository
from admissions_portal.modules.users.schemas import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_minutes * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log In",
    responses={
        401: {"description": "Invalid credentials or inactive account"},
        429: {"description": "Too many login attempts"},
    },
)
async def login(
    credentials: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings_dep),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> LoginResponse:
    await rate_limiter.enforce(
        f"login:{client_ip(request)}",
        settings.login_rate_limit,
        settings.login_rate_window_seconds,
    )

    user = await service.authenticate(db, credentials.username, credentials.password)
    token = service.issue_session_token(user, settings)
    _set_session_cookie(response, token, settings)

    return LoginResponse(
        access_token=token,
        token_type="bearer",
        expires_in=settings.session_ttl_minutes * 60,
        user=UserResponse.model_validate(user),
    )


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    responses={400: {"description": "Validation failed or email already registered"}},
)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    notifications: NotificationQueue = Depends(get_notifications),
) -> UserResponse:
    user = await service.register(db, notifications, data)
    return UserResponse.model_validate(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Log Out")
async def logout(settings: Settings = Depends(get_settings_dep)) -> Response:
    """Clear the session cookie. Tokens are stateless; clients should drop theirs too."""
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get(
    "/user",
    response_model=UserResponse,
    summary="Current User",
    responses={401: {"description": "Not authenticated"}},
)
async def current_user(
    db: AsyncSession = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
) -> UserResponse:
    user = await UserRepository.get_by_id(db, identity.id)
    if user is None:
        raise NotAuthenticatedError()
    return UserResponse.model_validate(user)
