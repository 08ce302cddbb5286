"""
User Models

Identities for every portal role. The username is the user's email address.
"""

from enum import Enum

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from admissions_portal.core.database import Base, TimestampMixin, enum_type


class UserRole(str, Enum):
    """Roles in the portal, highest privilege first."""

    ADMIN = "admin"
    SUB_ADMIN = "sub-admin"
    AGENT = "agent"
    STUDENT = "student"

    @property
    def is_staff(self) -> bool:
        return self in (UserRole.ADMIN, UserRole.SUB_ADMIN)


class User(TimestampMixin, Base):
    """
    Portal identity.

    Admins are never hard-deleted; sub-admins and agents may be.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Authentication fields
    username: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    # Role and status
    role: Mapped[UserRole] = mapped_column(
        enum_type(UserRole, "user_role"),
        nullable=False,
        default=UserRole.AGENT,
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Profile fields
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    agency_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    website: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, role={self.role.value})>"

    @property
    def full_name(self) -> str:
        """Display name, falling back to the email address."""
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or self.username
