"""Authentication schemas."""

from typing import Literal

from pydantic import Field

from admissions_portal.core.schemas import APIModel
from admissions_portal.modules.users.schemas import ProfileFields, UserResponse


class LoginRequest(APIModel):
    """Login request schema. Missing values are reported as MISSING_FIELD."""

    username: str | None = None
    password: str | None = None


class RegisterRequest(ProfileFields):
    """Self-registration. Only agent (default) and student accounts can be created."""

    username: str | None = None
    password: str | None = None
    role: Literal["agent", "student"] = "agent"


class LoginResponse(APIModel):
    """Login response schema. The token is also set as an HTTP-only cookie."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse
