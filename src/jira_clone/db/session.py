"""Engine and session factory management."""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.config import get_settings

SessionFactory = async_sessionmaker[AsyncSession]


@lru_cache()
def get_engine() -> AsyncEngine:
    """Return the process-wide engine, created on first use."""

    settings = get_settings()
    return create_async_engine(
        settings.database_url,
        echo=settings.db_echo,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> SessionFactory:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@lru_cache()
def get_session_factory() -> SessionFactory:
    """Return the session factory bound to :func:`get_engine`."""

    return build_session_factory(get_engine())


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create all tables; used for local development and tests."""

    from .. import models  # noqa: F401  register tables on the metadata

    target = engine or get_engine()
    async with target.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)


async def dispose_engine() -> None:
    if get_engine.cache_info().currsize:
        await get_engine().dispose()


__all__ = [
    "SessionFactory",
    "build_session_factory",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "init_db",
]
