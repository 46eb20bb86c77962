"""Engine and session helpers for the SQL store."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ..models import Base
from ..obs import add_query_logger


def make_engine(url: str) -> AsyncEngine:
    """Return an async engine for ``url``.

    In-memory SQLite URLs get a static pool so every session sees the same
    database.
    """

    kwargs: dict = {}
    if url.startswith("sqlite") and ":memory:" in url:
        kwargs = {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    engine = create_async_engine(url, **kwargs)
    add_query_logger(engine, "pos")
    return engine


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet."""

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = ["init_models", "make_engine", "make_sessionmaker"]
