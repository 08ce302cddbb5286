"""
Application Configuration

Settings are loaded from environment variables (and a local .env file) via
pydantic-settings. Nothing here opens connections; the settings object is
handed to the AppContext which owns every external resource.

Required:
- DATABASE_URL: startup aborts when it is missing

Recommended:
- SESSION_SECRET: signing key for session tokens. A development default is
  used (with a warning) when absent
- RESEND_API_KEY: without it emails are logged instead of sent
"""

import logging
from functools import lru_cache

from pydantic import ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

INSECURE_SESSION_SECRET = "insecure-development-session-secret-change-me"


class ConfigurationError(RuntimeError):
    """Raised when the environment is missing a required setting."""


class Settings(BaseSettings):
    """Environment-backed settings for the admissions portal API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_name: str = "NextWave Admissions API"
    python_env: str = "development"
    log_level: str = "INFO"

    # Database
    database_url: str
    database_echo: bool = False

    # Sessions
    session_secret: str | None = None
    session_ttl_minutes: int = 60 * 24
    session_cookie_name: str = "session"

    # Redis (optional - rate limiting falls back to process memory)
    redis_url: str | None = None

    # Email
    resend_api_key: str | None = None
    email_from: str = "NextWave Admissions <noreply@admissionsinuae.com>"
    frontend_url: str = "http://localhost:5173"

    # Notifications are handed to the background scheduler when enabled,
    # otherwise dispatched inline right after the transition commits.
    background_notifications: bool = True

    # CORS
    cors_origins: str = "http://localhost:5173"

    # Rate limits (requests, window seconds)
    login_rate_limit: int = 10
    login_rate_window_seconds: int = 60
    status_update_rate_limit: int = 60
    status_update_rate_window_seconds: int = 60

    @model_validator(mode="after")
    def _default_session_secret(self) -> "Settings":
        if not self.session_secret:
            logger.warning(
                "SESSION_SECRET is not set - using an insecure development default. "
                "Set SESSION_SECRET before deploying."
            )
            self.session_secret = INSECURE_SESSION_SECRET
        return self

    @property
    def is_development(self) -> bool:
        return self.python_env.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.python_env.lower() == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def load_settings(**overrides) -> Settings:
    """
    Build a Settings instance, turning a missing DATABASE_URL into a clear error.

    Args:
        **overrides: Explicit values that take precedence over the environment

    Returns:
        Validated Settings

    Raises:
        ConfigurationError: If a required setting is absent
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        missing = [
            str(err["loc"][0]).upper() for err in e.errors() if err.get("type") == "missing"
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variable(s): {', '.join(missing)}"
            ) from e
        raise


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once."""
    return load_settings()
