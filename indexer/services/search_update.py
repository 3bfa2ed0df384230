"""Processing of the search index queue.

`update_index` drains the queue in chunks. Each chunk is handled in its own
transaction while holding the write lock:

1. read up to `chunk_size` markers, oldest first
2. reconcile the referenced items of each kind with the index
3. delete the markers of all handled items

The index is not part of the DB transaction. If the process dies after
step 2, the markers are still there and the items are simply reconciled
again on the next run (at-least-once delivery, all index operations are
idempotent).
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import settings
from ..database import async_session_maker
from ..models.search_index_queue import IndexItemKind
from .search_queue import (
    delete_queue_markers,
    enqueue_all_items,
    partition_by_kind,
    read_queue_chunk,
)
from .search_service import SearchIndexError, clear_indexes
from .search_writer import SearchIndexWriter

logger = logging.getLogger(__name__)


@dataclass
class ChunkResult:
    """Outcome of processing one chunk of the queue."""

    read: int
    deleted: int
    done: bool


@dataclass
class IndexUpdateResult:
    """Summary of one `update_index` call."""

    chunks: int = 0
    processed: int = 0
    deleted: int = 0


async def _process_queue_chunk(
    db: AsyncSession, writer: SearchIndexWriter, chunk_size: int
) -> ChunkResult:
    """Handle the oldest `chunk_size` markers inside the current transaction."""
    # First, we retrieve a list of items that need updating
    try:
        markers = await read_queue_chunk(db, chunk_size)
    except Exception as exc:
        raise SearchIndexError("failed to load IDs from search index queue") from exc

    count = len(markers)
    if count == 0:
        logger.debug("No index update queued -> doing nothing")
        return ChunkResult(read=0, deleted=0, done=True)

    logger.debug("Loaded %d IDs from search index queue", count)
    ids_by_kind = partition_by_kind(markers)

    # Load items from DB and push them into the index
    for kind in IndexItemKind:
        try:
            await writer.update(db, kind, ids_by_kind[kind])
        except Exception as exc:
            raise SearchIndexError(
                f"failed to send {kind.plural_name} to search index"
            ) from exc

    # Delete all items that we have sent to the search index already
    try:
        affected = await delete_queue_markers(db, ids_by_kind)
    except Exception as exc:
        raise SearchIndexError("failed to remove items from search index queue") from exc
    logger.debug("Removed %d items from the search index queue", affected)

    if affected != count:
        logger.warning(
            "Wanted to delete %d items from search index queue, but deleted %d",
            count, affected,
        )

    return ChunkResult(read=count, deleted=affected, done=count < chunk_size)


async def update_index(
    writer: SearchIndexWriter,
    session_maker: async_sessionmaker[AsyncSession] = async_session_maker,
    chunk_size: int | None = None,
) -> IndexUpdateResult:
    """
    Process the search index queue until it is empty.

    Stops after the first chunk that contained fewer than `chunk_size`
    markers. Any error aborts the current chunk (its markers stay queued)
    and is raised as `SearchIndexError`.
    """
    chunk_size = chunk_size or settings.search_queue_chunk_size
    result = IndexUpdateResult()

    async def process(db: AsyncSession, writer: SearchIndexWriter) -> ChunkResult:
        return await _process_queue_chunk(db, writer, chunk_size)

    while True:
        chunk = await writer.with_write_lock(session_maker, process)
        result.chunks += 1
        result.processed += chunk.read
        result.deleted += chunk.deleted
        if chunk.done:
            break

    return result


async def rebuild_index(
    writer: SearchIndexWriter,
    session_maker: async_sessionmaker[AsyncSession] = async_session_maker,
    chunk_size: int | None = None,
) -> IndexUpdateResult:
    """Clear all indexes, queue every item and process the queue.

    Queueing and clearing happen under the write lock in one transaction,
    so no concurrent queue drain can interleave with it. Items are queued
    before the indexes are cleared: a failed clear rolls the markers back,
    but a cleared index always has its markers committed.
    """
    async def queue_and_clear(db: AsyncSession, writer: SearchIndexWriter) -> int:
        try:
            queued = await enqueue_all_items(db)
        except Exception as exc:
            raise SearchIndexError(
                "failed to queue items for search index rebuild"
            ) from exc
        try:
            await clear_indexes(writer.indexes)
        except Exception as exc:
            raise SearchIndexError("failed to clear search indexes") from exc
        return queued

    queued = await writer.with_write_lock(session_maker, queue_and_clear)
    logger.info("Queued %d items for search index rebuild", queued)

    result = await update_index(writer, session_maker, chunk_size)
    logger.info("Search index rebuild completed: %d items processed", result.processed)
    return result
