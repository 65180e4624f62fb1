"""Database handle with SQLAlchemy 2.0 async support.

The engine and session factory live on an explicitly constructed
``Database`` object created at application startup and stored on
``app.state``. Routes receive it through ``get_database``; nothing holds
a module-level connection pool.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import Depends, Request
from sqlalchemy import DateTime, MetaData, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from linkbio.core.config import Settings, get_settings
from linkbio.core.deadline import bounded

# Naming convention for constraints (helps with migrations)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def utcnow() -> datetime:
    """Timezone-aware current time; every stored timestamp is UTC."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    metadata = MetaData(naming_convention=convention)


class TimestampMixin:
    """created_at / updated_at columns stamped by the application."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class Database:
    """Owns the async engine (connection pool) and the session factory.

    Lifecycle: constructed at process start, ``dispose()``d at shutdown.
    """

    def __init__(self, url: str, **engine_kwargs: Any) -> None:
        self.url = url
        self.engine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build a pooled handle from application settings."""
        kwargs: dict[str, Any] = {"echo": settings.debug}
        if make_url(settings.database_url).get_backend_name() != "sqlite":
            kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_connect_timeout_seconds,
                pool_recycle=1800,  # Recycle connections after 30 minutes
                pool_pre_ping=True,
            )
        return cls(settings.database_url, **kwargs)

    def session(self) -> AsyncSession:
        """Open a new session; use as an async context manager."""
        return self.session_factory()

    async def create_all(self) -> None:
        """Create all tables.

        Note: In production, use Alembic migrations instead.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> None:
        """Round-trip a trivial statement; raises on failure."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()


def get_database(request: Request) -> Database:
    """Dependency returning the application's database handle."""
    return request.app.state.database


DatabaseDep = Annotated[Database, Depends(get_database)]


async def get_async_session(database: DatabaseDep) -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a request-scoped session.

    The connection is acquired eagerly under the connect-phase deadline so a
    stuck pool surfaces as 503 instead of hanging the request. The session
    commits when the request succeeds and rolls back otherwise.
    """
    settings = get_settings()
    async with database.session() as session:
        try:
            async with bounded("connect", settings.db_connect_timeout_seconds):
                await session.connection()
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# Type alias for dependency injection
AsyncSessionDep = Annotated[AsyncSession, Depends(get_async_session)]
