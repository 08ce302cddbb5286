"""
Application Context

Owns every long-lived resource: settings, database, optional Redis client,
rate limiter, background scheduler and the notification pipeline. One
context is built per FastAPI app by create_app(), stored on app.state, and
started/stopped by the lifespan. Routes reach it through the dependencies
below; nothing is kept in module-level globals.
"""

import logging

from fastapi import Depends, Request
from redis.asyncio import Redis
from redis.exceptions import RedisError

from admissions_portal.core.config import Settings
from admissions_portal.core.database import Database
from admissions_portal.core.email import EmailTransport, ResendEmailTransport
from admissions_portal.core.rate_limit import RateLimiter, client_ip
from admissions_portal.core.redis import close_redis, connect_redis
from admissions_portal.core.scheduler import TaskScheduler
from admissions_portal.modules.applications.state_machine import ApplicationStateMachine
from admissions_portal.modules.audit.schemas import RequestMeta
from admissions_portal.modules.notifications import NotificationDispatcher, NotificationQueue

logger = logging.getLogger(__name__)


class AppContext:
    """Explicitly constructed runtime dependencies for one application instance."""

    def __init__(
        self,
        settings: Settings,
        *,
        email_transport: EmailTransport | None = None,
        database: Database | None = None,
    ):
        self.settings = settings
        self.database = database or Database(settings.database_url, echo=settings.database_echo)
        self.redis: Redis | None = None
        self.rate_limiter = RateLimiter()
        self.scheduler = TaskScheduler(enabled=settings.background_notifications)
        self.email_transport = email_transport or ResendEmailTransport(
            settings.resend_api_key, settings.email_from
        )
        self.dispatcher = NotificationDispatcher(self.email_transport, settings.frontend_url)
        self.notifications = NotificationQueue(self.dispatcher, self.scheduler)
        self.state_machine = ApplicationStateMachine(self.notifications)

    async def startup(self) -> None:
        logger.info(f"Starting {self.settings.app_name} in {self.settings.python_env} mode...")

        if self.settings.redis_url:
            try:
                self.redis = await connect_redis(self.settings.redis_url)
                self.rate_limiter.redis_client = self.redis
                logger.info("[OK] Redis connected")
            except (RedisError, OSError) as e:
                logger.error(f"[FAIL] Redis connection failed: {e}")
                if self.settings.is_production:
                    raise
        else:
            logger.info("REDIS_URL not set - rate limits use in-process counters")

        try:
            await self.database.ping()
            logger.info("[OK] Database connected")
        except Exception as e:
            logger.error(f"[FAIL] Database connection failed: {e}")
            if self.settings.is_production:
                raise

        await self.scheduler.start()

    async def shutdown(self) -> None:
        logger.info(f"Shutting down {self.settings.app_name}...")

        # Drain queued notifications before the transport and database go away
        await self.scheduler.stop()

        await close_redis(self.redis)
        self.redis = None
        self.rate_limiter.redis_client = None

        await self.database.dispose()
        logger.info("[OK] Cleanup complete")


# ============================================
# Dependencies
# ============================================


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_settings_dep(context: AppContext = Depends(get_context)) -> Settings:
    return context.settings


def get_state_machine(context: AppContext = Depends(get_context)) -> ApplicationStateMachine:
    return context.state_machine


def get_notifications(context: AppContext = Depends(get_context)) -> NotificationQueue:
    return context.notifications


def get_rate_limiter(context: AppContext = Depends(get_context)) -> RateLimiter:
    return context.rate_limiter


def get_request_meta(request: Request) -> RequestMeta:
    """Client details recorded with audit entries."""
    return RequestMeta(
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
