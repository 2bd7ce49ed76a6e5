from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from services.building_ops.models import (  # noqa: F401
    CanonicalEvent,
    EventMatch,
    RawEvent,
    Resource,
    ResourceAlias,
)
from services.building_ops.settings import get_settings
from services.common import get_async_database_url

# Export metadata for migrations
metadata = SQLModel.metadata

# Global variables for lazy initialization
_engine: AsyncEngine | None = None
_async_session_local: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get database engine with lazy initialization."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            get_async_database_url(settings.db_url_building_ops), echo=False
        )
    return _engine


def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get async session factory with lazy initialization."""
    global _async_session_local
    if _async_session_local is None:
        _async_session_local = async_sessionmaker(
            get_engine(), class_=AsyncSession, expire_on_commit=False
        )
    return _async_session_local


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Get async database session."""
    session_factory = get_async_session_factory()
    async with session_factory() as session:
        yield session


async def create_tables() -> None:
    """Create all tables."""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def close_db() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _async_session_local
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _async_session_local = None
