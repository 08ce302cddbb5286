"""User schemas. The password hash never appears in any response."""

from datetime import datetime

from pydantic import ConfigDict, Field

from admissions_portal.core.schemas import APIModel
from admissions_portal.modules.users.models import UserRole


class ProfileFields(APIModel):
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    agency_name: str | None = Field(None, max_length=200)
    country: str | None = Field(None, max_length=100)
    phone_number: str | None = Field(None, max_length=30)
    website: str | None = Field(None, max_length=255)


class UserResponse(APIModel):
    id: int
    username: str
    role: UserRole
    active: bool
    first_name: str | None
    last_name: str | None
    agency_name: str | None
    country: str | None
    phone_number: str | None
    website: str | None
    created_at: datetime


class UserCreateRequest(ProfileFields):
    """
    Request body for POST /admin/users.

    Any role sent by the client is ignored; admin-created users are agents.
    """

    username: str | None = None
    password: str | None = None


class UserUpdateRequest(ProfileFields):
    """Request body for PUT /admin/users/{id}. Role and credentials are not accepted."""

    model_config = ConfigDict(extra="forbid")


class UserStatusRequest(APIModel):
    active: bool


class SubAdminCreateRequest(APIModel):
    username: str | None = None
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    password: str | None = None


class SubAdminCreatedResponse(APIModel):
    sub_admin: UserResponse
    temporary_password: str


class PasswordResetResponse(APIModel):
    temporary_password: str
