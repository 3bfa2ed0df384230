"""Shared pytest fixtures for search index tests."""

import os
import sys
from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Required settings must exist before the config module is imported
os.environ.setdefault("DB_SERVER", "localhost")
os.environ.setdefault("DB_NAME", "search_test")
os.environ.setdefault("DB_USER", "search_test")
os.environ.setdefault("DB_PASSWORD", "search_test")

from indexer.database import Base
from indexer.models import Event, IndexItemKind, Realm, SearchIndexQueue
from indexer.services.search_queue import enqueue_items
from indexer.services.search_writer import SearchIndexWriter


# Use in-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def engine():
    """Create a test database engine with SQLite."""
    engine = create_async_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test database."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session


def make_meili_index() -> MagicMock:
    """Mock of a Meilisearch AsyncIndex with the methods the writer uses."""
    index = MagicMock()
    index.add_documents = AsyncMock()
    index.delete_documents = AsyncMock()
    index.delete_all_documents = AsyncMock()
    return index


@pytest.fixture
def meili_indexes() -> dict[IndexItemKind, MagicMock]:
    """One mocked index per item kind."""
    return {kind: make_meili_index() for kind in IndexItemKind}


@pytest.fixture
def writer(meili_indexes) -> SearchIndexWriter:
    """Writer on top of the mocked indexes."""
    return SearchIndexWriter(meili_indexes)


# ============================================================================
# Data helpers
# ============================================================================


async def add_realms(session_maker, *realms: tuple[int, str, str | None]) -> None:
    """Insert realms given as (id, full_path, name) tuples."""
    async with session_maker() as db:
        for realm_id, full_path, name in realms:
            parent_path = full_path.rsplit("/", 1)[0] if full_path else None
            parent = None
            if parent_path is not None:
                result = await db.execute(
                    select(Realm.id).where(Realm.full_path == parent_path)
                )
                parent = result.scalar_one_or_none()
            db.add(Realm(
                id=realm_id,
                parent=parent,
                path_segment=full_path.rsplit("/", 1)[-1],
                name=name,
                full_path=full_path,
            ))
            await db.flush()
        await db.commit()


async def add_events(session_maker, *event_ids: int, series_id: int | None = None) -> None:
    """Insert simple events with the given keys."""
    async with session_maker() as db:
        for event_id in event_ids:
            db.add(Event(
                id=event_id,
                series_id=series_id,
                title=f"Event {event_id}",
                description="A lecture recording",
                creators=["Jane Doe"],
                thumbnail=None,
                duration=60_000,
                created=datetime(2024, 1, 1, tzinfo=timezone.utc),
                is_live=False,
                read_roles=["ROLE_ANONYMOUS"],
            ))
        await db.commit()


async def queue(session_maker, kind: IndexItemKind, *ids: int) -> None:
    """Insert queue markers for the given items."""
    async with session_maker() as db:
        await enqueue_items(db, kind, list(ids))
        await db.commit()


async def queued_markers(session_maker) -> list[tuple[IndexItemKind, int]]:
    """All remaining markers as (kind, item_id), in queue order."""
    async with session_maker() as db:
        result = await db.execute(
            select(SearchIndexQueue.kind, SearchIndexQueue.item_id)
            .order_by(SearchIndexQueue.id)
        )
        return [(IndexItemKind(kind), item_id) for kind, item_id in result.all()]
