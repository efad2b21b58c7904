"""
Async database session management.
Challenge: Connection pooling, scoped sessions, proper cleanup.
Design: Dependency injection for request-scoped sessions (no connection leaks).
"""

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict[str, Any]:
    """Pool sizing only applies to server databases; SQLite picks its own pool."""
    opts: dict[str, Any] = {"echo": settings.debug}
    if not url.startswith("sqlite"):
        opts.update(
            pool_pre_ping=True,  # Verify connections before use
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
    return opts


# Async engine with connection pool (scalability)
engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# Session factory: one session per request
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session per request. Ensures rollback on error, close on exit."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Scope one logical unit of work: commit on success, roll back on any error."""
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise


# Type alias for FastAPI dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
