"""Async database engine and session utilities.

Nothing here is process-global: the application builds one engine and one
session factory at startup and hands them to the repository that owns them.
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from geoapi.config import Settings


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async SQLAlchemy engine described by *settings*."""
    return create_async_engine(
        settings.DATABASE_URL,
        pool_size=settings.DATABASE_POOL_SIZE,
        pool_timeout=settings.DATABASE_POOL_TIMEOUT,
        pool_pre_ping=True,
        echo=settings.DEBUG,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory; sessions are opened per repository operation.

    Usage:
        async with session_factory() as session:
            region = (await session.execute(stmt)).scalar_one_or_none()
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
