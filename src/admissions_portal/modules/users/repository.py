"""
User Repository

Database operations for portal identities. Callers own the transaction.
"""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_portal.modules.users.models import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        username: str,
        password_hash: str,
        role: UserRole,
        first_name: str | None = None,
        last_name: str | None = None,
        agency_name: str | None = None,
        country: str | None = None,
        phone_number: str | None = None,
        website: str | None = None,
        active: bool = True,
    ) -> User:
        """
        Create a new user record and flush it so the id is assigned.

        Args:
            db: Database session
            username: Email address (unique)
            password_hash: Hashed password
            role: User's role
            active: Whether the user can log in

        Returns:
            Created User instance
        """
        user = User(
            username=username,
            password_hash=password_hash,
            role=role,
            first_name=first_name,
            last_name=last_name,
            agency_name=agency_name,
            country=country,
            phone_number=phone_number,
            website=website,
            active=active,
        )

        db.add(user)
        await db.flush()

        logger.info(f"Created user: {user.id} - {user.username} ({user.role.value})")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> User | None:
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_username(db: AsyncSession, username: str) -> User | None:
        """Case-insensitive lookup by email address."""
        result = await db.execute(
            select(User).where(func.lower(User.username) == username.strip().lower())
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def username_exists(db: AsyncSession, username: str) -> bool:
        return await UserRepository.get_by_username(db, username) is not None

    @staticmethod
    async def list_users(db: AsyncSession, role: UserRole | None = None) -> list[User]:
        stmt = select(User).order_by(User.created_at.desc(), User.id.desc())
        if role is not None:
            stmt = stmt.where(User.role == role)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_staff_emails(db: AsyncSession) -> list[str]:
        """Email addresses of every active admin and sub-admin."""
        result = await db.execute(
            select(User.username)
            .where(User.role.in_([UserRole.ADMIN, UserRole.SUB_ADMIN]), User.active.is_(True))
            .order_by(User.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def count_active(db: AsyncSession, role: UserRole) -> int:
        result = await db.execute(
            select(func.count(User.id)).where(User.role == role, User.active.is_(True))
        )
        return result.scalar_one()

    @staticmethod
    async def delete(db: AsyncSession, user_id: int) -> None:
        await db.execute(delete(User).where(User.id == user_id))
