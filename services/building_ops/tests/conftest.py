"""
Shared fixtures for Building Ops Service tests.

Store-backed tests run against a temp-file SQLite database through
aiosqlite, one database per test.
"""

import os
import tempfile
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from services.building_ops.models import CanonicalEvent
from services.building_ops.services.event_store import SQLEventStore


@pytest.fixture
def db_path():
    fd, path = tempfile.mkstemp(suffix=".sqlite3")
    os.close(fd)
    yield path
    if os.path.exists(path):
        os.unlink(path)


@pytest.fixture
async def session_factory(db_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def store(session_factory):
    return SQLEventStore(session_factory)


@pytest.fixture
def edit_canonical_event(session_factory):
    """Simulate a portal user editing operational fields of a canonical event."""

    async def edit(event_id: str, **fields: Any) -> None:
        async with session_factory() as session:
            event = await session.get(CanonicalEvent, event_id)
            assert event is not None
            for field, value in fields.items():
                setattr(event, field, value)
            await session.commit()

    return edit
