"""Search index services."""

from .search_daemon import SearchIndexDaemon, next_update_delay
from .search_items import ITEM_TYPES, IndexItem, SearchEvent, SearchId, SearchRealm, to_search_id
from .search_queue import (
    delete_queue_markers,
    enqueue_all_items,
    enqueue_items,
    partition_by_kind,
    queue_len,
    queue_status,
    read_queue_chunk,
)
from .search_service import (
    SearchIndexError,
    check_search_health,
    clear_indexes,
    close_meilisearch,
    get_meili_client,
    get_meili_indexes,
    index_name,
    init_meilisearch,
)
from .search_update import IndexUpdateResult, rebuild_index, update_index
from .search_writer import ReconcileResult, SearchIndexWriter, get_search_writer

__all__ = [
    "ITEM_TYPES",
    "IndexItem",
    "IndexUpdateResult",
    "ReconcileResult",
    "SearchEvent",
    "SearchId",
    "SearchIndexDaemon",
    "SearchIndexError",
    "SearchIndexWriter",
    "SearchRealm",
    "check_search_health",
    "clear_indexes",
    "close_meilisearch",
    "delete_queue_markers",
    "enqueue_all_items",
    "enqueue_items",
    "get_meili_client",
    "get_meili_indexes",
    "get_search_writer",
    "index_name",
    "init_meilisearch",
    "next_update_delay",
    "partition_by_kind",
    "queue_len",
    "queue_status",
    "read_queue_chunk",
    "rebuild_index",
    "to_search_id",
    "update_index",
]
