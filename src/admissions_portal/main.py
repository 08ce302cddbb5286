"""
NextWave Admissions API - Main Application Entry Point

create_app() builds a FastAPI application around an explicitly constructed
AppContext:
- Database, optional Redis and background scheduler (owned by the context)
- Exception handlers producing the {"error", "message", "fields"} envelope
- CORS middleware
- API routing under /api
- Health check endpoints

Run with:
    uvicorn admissions_portal.main:create_app --factory
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from admissions_portal.api import api_router
from admissions_portal.core.config import Settings, get_settings
from admissions_portal.core.context import AppContext
from admissions_portal.core.email import EmailTransport
from admissions_portal.core.errors import register_exception_handlers

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the context's resources before serving and release them after."""
    context: AppContext = app.state.context
    await context.startup()

    yield  # Application runs here

    await context.shutdown()


def create_app(
    settings: Settings | None = None,
    *,
    email_transport: EmailTransport | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Explicit settings; loaded from the environment when omitted
        email_transport: Replacement email transport (tests inject fakes here)

    Raises:
        ConfigurationError: DATABASE_URL is missing from the environment
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    context = AppContext(settings, email_transport=email_transport)

    app = FastAPI(
        title=settings.app_name,
        description="UAE university admissions portal: applications, review workflow and notifications",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.context = context

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint for container orchestration."""
        return {"status": "healthy"}

    @app.get("/ready", tags=["Health"])
    async def readiness_check():
        """Readiness check: the database must answer SELECT 1."""
        try:
            await context.database.ping()
        except Exception as e:
            logger.error(f"Readiness check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={"status": "unavailable", "database": "error"},
            )
        return {"status": "ready", "database": "connected"}

    return app
