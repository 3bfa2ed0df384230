"""Meilisearch client management for the realm and event indexes.

Provides:
- Meilisearch client management (init, get client, get indexes per item kind)
- Index preparation (create missing indexes, apply settings)
- Clearing all indexes
- Health check
"""

import logging

from meilisearch_python_sdk import AsyncClient
from meilisearch_python_sdk.errors import MeilisearchApiError
from meilisearch_python_sdk.index import AsyncIndex

from ..config import settings
from ..models.search_index_queue import IndexItemKind

logger = logging.getLogger(__name__)


class SearchIndexError(Exception):
    """Raised when the search index could not be brought up to date."""


# Index settings (configure BEFORE adding documents)
MEILISEARCH_INDEX_SETTINGS: dict[IndexItemKind, dict[str, list[str]]] = {
    IndexItemKind.REALM: {
        "searchableAttributes": [
            "name",
            "ancestor_names",
        ],
        "filterableAttributes": [
            "is_root",
        ],
        "sortableAttributes": [
            "name",
        ],
    },
    IndexItemKind.EVENT: {
        "searchableAttributes": [
            "title",
            "creators",
            "description",
        ],
        "filterableAttributes": [
            "read_roles",
            "is_live",
            "series_id",
        ],
        "sortableAttributes": [
            "created",
            "title",
        ],
    },
}


def index_name(kind: IndexItemKind) -> str:
    """Meilisearch index uid for the given item kind."""
    return f"{settings.meilisearch_index_prefix}{kind.plural_name}"


# ---- Client Management ----

_meili_client: AsyncClient | None = None
_meili_indexes: dict[IndexItemKind, AsyncIndex] = {}


async def _prepare_index(client: AsyncClient, kind: IndexItemKind) -> AsyncIndex:
    """Get or create the index for `kind` and apply its settings."""
    name = index_name(kind)
    try:
        index = await client.get_index(name)
    except MeilisearchApiError:
        logger.info("Creating Meilisearch index '%s'", name)
        index = await client.create_index(name, primary_key="id")

    index_settings = MEILISEARCH_INDEX_SETTINGS[kind]

    # Wait for each task to complete before proceeding
    task_info = await index.update_searchable_attributes(
        index_settings["searchableAttributes"]
    )
    await client.wait_for_task(task_info.task_uid)

    task_info = await index.update_filterable_attributes(
        index_settings["filterableAttributes"]
    )
    await client.wait_for_task(task_info.task_uid)

    task_info = await index.update_sortable_attributes(
        index_settings["sortableAttributes"]
    )
    await client.wait_for_task(task_info.task_uid)

    return index


async def init_meilisearch() -> None:
    """Initialize the Meilisearch client and prepare one index per item kind."""
    global _meili_client, _meili_indexes

    if not settings.meilisearch_api_key:
        logger.warning(
            "meilisearch_api_key is empty -- Meilisearch is unauthenticated. "
            "Set MEILISEARCH_API_KEY in production."
        )

    client = AsyncClient(
        url=settings.meilisearch_url,
        api_key=settings.meilisearch_api_key or None,
        timeout=settings.meilisearch_timeout,
    )

    indexes = {}
    for kind in IndexItemKind:
        indexes[kind] = await _prepare_index(client, kind)

    _meili_client = client
    _meili_indexes = indexes
    logger.info(
        "Meilisearch initialized: indexes=%s",
        ", ".join(index_name(kind) for kind in IndexItemKind),
    )


async def close_meilisearch() -> None:
    """Close the Meilisearch client (no-op if not initialized)."""
    global _meili_client, _meili_indexes

    if _meili_client is not None:
        await _meili_client.aclose()
    _meili_client = None
    _meili_indexes = {}


def get_meili_client() -> AsyncClient:
    """Get the Meilisearch client instance."""
    if _meili_client is None:
        raise RuntimeError("Meilisearch not initialized")
    return _meili_client


def get_meili_indexes() -> dict[IndexItemKind, AsyncIndex]:
    """Get the Meilisearch index of every item kind."""
    if not _meili_indexes:
        raise RuntimeError("Meilisearch not initialized")
    return dict(_meili_indexes)


# ---- Clear ----

async def clear_indexes(indexes: dict[IndexItemKind, AsyncIndex]) -> None:
    """Delete all documents from all given indexes.

    Only waits for the deletion tasks to be enqueued: Meilisearch processes
    tasks of one index in order, so later additions are applied after the
    deletion.
    """
    for kind, index in indexes.items():
        await index.delete_all_documents()
        logger.info("Started clearing all %s from the search index", kind.plural_name)


# ---- Health Check ----

async def check_search_health() -> dict:
    """Check Meilisearch availability and return per-index stats."""
    try:
        client = get_meili_client()
        await client.health()
        documents = {}
        for kind, index in get_meili_indexes().items():
            stats = await index.get_stats()
            documents[kind.plural_name] = stats.number_of_documents
        return {
            "status": "healthy",
            "documents_indexed": documents,
        }
    except Exception as e:
        logger.warning("Meilisearch health check failed: %s", e)
        return {
            "status": "degraded",
        }
