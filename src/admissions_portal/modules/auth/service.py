"""
Authentication Service

Credential checks and self-registration.

authenticate() never reveals whether an email is registered: unknown users
and wrong passwords fail identically and take the same time. The inactive
account error is only raised after the password has been verified.
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.core.config import Settings
from admissions_portal.core.errors import (
    AccountInactiveError,
    InvalidCredentialsError,
    MissingFieldError,
)
from admissions_portal.core.security import (
    burn_password_check,
    create_session_token,
    verify_password,
)
from admissions_portal.modules.auth.schemas import RegisterRequest
from admissions_portal.modules.notifications import (
    NotificationEvent,
    NotificationKind,
    NotificationQueue,
    Recipients,
)
from admissions_portal.modules.users import service as users_service
from admissions_portal.modules.users.models import User, UserRole
from admissions_portal.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


async def authenticate(db: AsyncSession, username: str | None, password: str | None) -> User:
    """
    Verify credentials.

    Raises:
        MissingFieldError: username or password absent
        InvalidCredentialsError: Unknown username or wrong password
        AccountInactiveError: Correct credentials for a deactivated account
    """
    if not username:
        raise MissingFieldError("username")
    if not password:
        raise MissingFieldError("password")

    user = await UserRepository.get_by_username(db, username)

    if user is None:
        await asyncio.to_thread(burn_password_check, password)
        logger.warning("Login failed: unknown username")
        raise InvalidCredentialsError()

    if not await asyncio.to_thread(verify_password, password, user.password_hash):
        logger.warning(f"Login failed: wrong password for user {user.id}")
        raise InvalidCredentialsError()

    if not user.active:
        logger.warning(f"Login refused: user {user.id} is inactive")
        raise AccountInactiveError()

    logger.info(f"User {user.id} logged in ({user.role.value})")
    return user


def issue_session_token(user: User, settings: Settings) -> str:
    return create_session_token(
        subject=str(user.id),
        role=user.role.value,
        active=user.active,
        secret=settings.session_secret,
        ttl_minutes=settings.session_ttl_minutes,
    )


async def register(
    db: AsyncSession,
    notifications: NotificationQueue,
    data: RegisterRequest,
) -> User:
    """
    Create an agent or student account.

    Sends a welcome email to the new user and a notice to staff, both after
    commit and best-effort.
    """
    try:
        user = await users_service.create_account(
            db,
            username=data.username,
            password=data.password,
            role=UserRole(data.role),
            profile=data,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Registered user {user.id} ({user.role.value})")

    await notifications.enqueue(
        NotificationEvent(
            kind=NotificationKind.WELCOME,
            recipients=Recipients(user=user.username),
            user=users_service.snapshot(user),
        )
    )
    await users_service.announce_user_created(db, notifications, user)
    return user
