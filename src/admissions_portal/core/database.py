"""
Database Engine and Sessions

Declarative base for every model plus the Database object that owns the async
engine and session factory. One Database is constructed per AppContext and
disposed on shutdown.
"""

import enum
import logging
from collections.abc import AsyncIterator
from datetime import UTC, datetime

from fastapi import Request
from sqlalchemy import DateTime, Enum, func, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


def enum_type(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Enum column type that stores member values ("under-review"), not names."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


def utcnow() -> datetime:
    return datetime.now(UTC)


class TimestampMixin:
    """
    created_at / updated_at columns shared by mutable tables.

    Values are generated client-side so they are populated without a refresh.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
    )


class Database:
    """
    Async engine + session factory.

    expire_on_commit=False lets services return ORM objects after commit
    without triggering lazy loads outside the session.
    """

    def __init__(self, url: str, *, echo: bool = False):
        engine_kwargs: dict = {"echo": echo}
        if url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url:
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["pool_pre_ping"] = True

        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    def session(self) -> AsyncSession:
        return self.session_maker()

    async def ping(self) -> None:
        """Run SELECT 1 to prove the connection works."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_all(self) -> None:
        """Create every table. Used by tests and local sqlite setups."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency providing one session per request.

    Services own commit/rollback; this only guarantees the session is closed.
    """
    database: Database = request.app.state.context.database
    async with database.session() as session:
        yield session
