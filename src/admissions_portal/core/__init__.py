"""
Core module - Configuration, database, security, errors and runtime context.
"""

from admissions_portal.core.config import ConfigurationError, Settings, get_settings, load_settings
from admissions_portal.core.database import Base, Database, get_db
from admissions_portal.core.errors import PortalError, register_exception_handlers
from admissions_portal.core.security import (
    create_session_token,
    decode_session_token,
    hash_password,
    verify_password,
)

__all__ = [
    # Config
    "ConfigurationError",
    "Settings",
    "get_settings",
    "load_settings",
    # Database
    "Base",
    "Database",
    "get_db",
    # Errors
    "PortalError",
    "register_exception_handlers",
    # Security
    "hash_password",
    "verify_password",
    "create_session_token",
    "decode_session_token",
]
