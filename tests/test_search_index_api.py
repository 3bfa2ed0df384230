"""Tests for the search index admin API."""

from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from indexer.database import get_db, get_session_maker
from indexer.main import app
from indexer.models import IndexItemKind
from indexer.routers.search_index import get_writer

from conftest import add_events, queue, queued_markers


@pytest_asyncio.fixture
async def client(session_maker, writer) -> AsyncGenerator[AsyncClient, None]:
    """API client with database and writer dependencies overridden."""
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    app.dependency_overrides[get_writer] = lambda: writer

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


class TestQueueStatusEndpoint:
    """GET /api/admin/search-index"""

    @pytest.mark.asyncio
    async def test_reports_pending_items(self, client, session_maker):
        await queue(session_maker, IndexItemKind.EVENT, 1, 2)
        await queue(session_maker, IndexItemKind.REALM, 3)

        response = await client.get("/api/admin/search-index")

        assert response.status_code == 200
        assert response.json() == {"total": 3, "by_kind": {"realm": 1, "event": 2}}


class TestUpdateEndpoint:
    """POST /api/admin/search-index/update"""

    @pytest.mark.asyncio
    async def test_drains_queue(self, client, session_maker, meili_indexes):
        await add_events(session_maker, 1)
        await queue(session_maker, IndexItemKind.EVENT, 1, 2)

        response = await client.post("/api/admin/search-index/update")

        assert response.status_code == 200
        assert response.json() == {"chunks": 1, "processed": 2, "deleted": 2}
        meili_indexes[IndexItemKind.EVENT].delete_documents.assert_awaited_once_with(["2"])
        assert await queued_markers(session_maker) == []

    @pytest.mark.asyncio
    async def test_index_failure_returns_503(self, client, session_maker, meili_indexes):
        await add_events(session_maker, 1)
        await queue(session_maker, IndexItemKind.EVENT, 1)
        meili_indexes[IndexItemKind.EVENT].add_documents.side_effect = ConnectionError("down")

        response = await client.post("/api/admin/search-index/update")

        assert response.status_code == 503
        assert "failed to send events" in response.json()["detail"]
        assert await queued_markers(session_maker) == [(IndexItemKind.EVENT, 1)]


class TestRebuildEndpoint:
    """POST /api/admin/search-index/rebuild"""

    @pytest.mark.asyncio
    async def test_rebuilds_all_indexes(self, client, session_maker, meili_indexes):
        await add_events(session_maker, 4, 5)

        response = await client.post("/api/admin/search-index/rebuild")

        assert response.status_code == 200
        assert response.json()["processed"] == 2
        for index in meili_indexes.values():
            index.delete_all_documents.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_queue_failure_returns_503(self, client, meili_indexes):
        with patch(
            "indexer.services.search_update.enqueue_all_items",
            AsyncMock(side_effect=RuntimeError("db gone")),
        ):
            response = await client.post("/api/admin/search-index/rebuild")

        assert response.status_code == 503
        assert "failed to queue items" in response.json()["detail"]
        for index in meili_indexes.values():
            index.delete_all_documents.assert_not_awaited()


class TestWithoutMeilisearch:
    """Endpoints degrade while Meilisearch is not initialized."""

    @pytest.mark.asyncio
    async def test_update_returns_503(self, session_maker):
        app.dependency_overrides[get_session_maker] = lambda: session_maker
        try:
            async with AsyncClient(
                transport=ASGITransport(app=app), base_url="http://test"
            ) as ac:
                response = await ac.post("/api/admin/search-index/update")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_health_reports_degraded_search(self):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "search": {"status": "degraded"}}
