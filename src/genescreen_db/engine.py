"""Async SQLAlchemy engine for the development ledger.

Connection parameters come from the environment, read once when the engine
is first needed:

  - ``DATABASE_URL`` wins when set (a plain ``postgresql://`` URL gets the
    ``asyncpg`` driver prefix)
  - otherwise ``PG_HOST`` / ``PG_PORT`` / ``PG_USER`` / ``PG_PASSWORD`` /
    ``PG_DATABASE``, convenient for docker-compose
  - ``PG_POOL_SIZE`` / ``PG_MAX_OVERFLOW`` size the pool

The engine and its session factory are process-wide singletons.  Call
``dispose_engine()`` during graceful shutdown.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from genescreen_db.models import Base

_ASYNC_SCHEME = "postgresql+asyncpg://"


@dataclass(frozen=True)
class DatabaseSettings:
    url: str
    pool_size: int = 5
    max_overflow: int = 10

    @classmethod
    def from_env(cls) -> DatabaseSettings:
        url = os.getenv("DATABASE_URL")
        if not url:
            url = "postgresql://{user}:{password}@{host}:{port}/{database}".format(
                user=os.getenv("PG_USER", "genescreen"),
                password=os.getenv("PG_PASSWORD", "genescreen"),
                host=os.getenv("PG_HOST", "localhost"),
                port=os.getenv("PG_PORT", "5432"),
                database=os.getenv("PG_DATABASE", "genescreen"),
            )
        if url.startswith("postgresql://"):
            url = _ASYNC_SCHEME + url[len("postgresql://"):]
        return cls(
            url=url,
            pool_size=int(os.getenv("PG_POOL_SIZE", "5")),
            max_overflow=int(os.getenv("PG_MAX_OVERFLOW", "10")),
        )


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        settings = DatabaseSettings.from_env()
        _engine = create_async_engine(
            settings.url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
        )
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Sessions keep attributes loaded after commit (``expire_on_commit=False``)."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def create_schema() -> None:
    """Create the ledger tables if they do not exist yet."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
