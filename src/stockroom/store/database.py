"""Engine and session plumbing for the reference item store's SQLite database."""
from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ..config import get_settings


class Base(DeclarativeBase):
    """Declarative base shared by the store's tables."""


def create_engine(database_url: str | None = None, echo: bool | None = None) -> AsyncEngine:
    """Build an async engine, defaulting to ``STOCKROOM_DATABASE_URL``.

    Passing ``database_url`` lets tests point a store at a throwaway file.
    """

    settings = get_settings()
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.echo_sql if echo is None else echo,
    )


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Items are serialized after commit, so attributes must stay loaded.
    return async_sessionmaker(bind=bind, expire_on_commit=False)


engine = create_engine()
SessionFactory = make_session_factory(engine)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Request-scoped session for the item routes."""

    async with SessionFactory() as session:
        yield session


__all__ = [
    "Base",
    "create_engine",
    "engine",
    "get_session",
    "make_session_factory",
    "SessionFactory",
]
