"""
Users module - portal identities and their administration.
"""

from admissions_portal.modules.users.models import User, UserRole
from admissions_portal.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "UserRepository"]
