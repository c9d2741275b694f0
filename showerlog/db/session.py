"""Database session management.

The engine and session factory are built once in the application lifespan and
kept on ``app.state``; handlers and the session middleware reach them through
the request instead of a module-level global.
"""

import ssl
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from showerlog.config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the process-wide async engine."""
    connect_args = {}
    if settings.database_requires_ssl:
        connect_args["ssl"] = ssl.create_default_context()

    return create_async_engine(
        settings.database_url_async,
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        connect_args=connect_args,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine``."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
