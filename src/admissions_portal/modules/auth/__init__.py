"""Authentication module."""

from admissions_portal.modules.auth.router import router
from admissions_portal.modules.auth.schemas import LoginRequest, LoginResponse, RegisterRequest

__all__ = ["router", "LoginRequest", "LoginResponse", "RegisterRequest"]
