"""
Async engine and session factory construction.

The engine is created once per process from Settings (see main.lifespan) and
disposed on shutdown. Components receive the session factory at construction
time and open their own short-lived sessions.
"""

from sqlalchemy.exc import DBAPIError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from seamless_ride.core.config import Settings

# Connection-level failures reported to callers as STORAGE_UNAVAILABLE.
# IntegrityError is a DBAPIError too; catch it first where it matters.
STORAGE_ERRORS = (DBAPIError, PoolTimeoutError, OSError)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    if settings.DATABASE_URL.startswith("sqlite"):
        # SQLite has no server-side pool to size
        return create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)

    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
