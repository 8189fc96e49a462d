"""
Database Connection Module
Handles the async SQLAlchemy engine, session factory and transaction scope.

Every participant in an order placement receives the session yielded by
``transaction()`` explicitly; nothing reads a global connection.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from bobapos.core.config import get_settings


# Base class for all our models
class Base(DeclarativeBase):
    pass


def build_engine(
    database_url: str,
    echo: bool = False,
    isolation_level: Optional[str] = None,
    pool_size: Optional[int] = None,
    max_overflow: Optional[int] = None,
) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    SQLite serializes writers on its own and rejects the server isolation
    levels, so ``isolation_level`` is only applied to other backends.
    """
    kwargs = {"echo": echo}
    if make_url(database_url).get_backend_name() != "sqlite":
        if isolation_level:
            kwargs["isolation_level"] = isolation_level
        if pool_size is not None:
            kwargs["pool_size"] = pool_size
        if max_overflow is not None:
            kwargs["max_overflow"] = max_overflow
    return create_async_engine(database_url, **kwargs)


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory; objects stay readable after commit."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


settings = get_settings()

engine = build_engine(
    settings.database_url,
    echo=settings.database_echo,
    isolation_level=settings.database_isolation_level,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
)

async_session_maker = build_session_maker(engine)


@asynccontextmanager
async def transaction(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Open a session and run the enclosed block as one transaction.

    Commits when the block exits normally and rolls back on any exception,
    including cancellation, before the session is released.
    """
    async with session_maker() as session:
        async with session.begin():
            yield session


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and ensures cleanup.
    """
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """
    Create all tables in database.
    Called once at application startup.
    """
    # Register the mapped tables on Base.metadata
    import bobapos.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
