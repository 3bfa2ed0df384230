"""Access to the `search_index_queue` table.

The queue is the durable list of items whose search index entry is stale.
Markers are read oldest first and only deleted after the corresponding
index update was sent to Meilisearch.
"""

import logging
from typing import Iterable, Sequence

from sqlalchemy import and_, cast, delete, func, insert, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.event import Event
from ..models.realm import Realm
from ..models.search_index_queue import IndexItemKind, SearchIndexQueue

logger = logging.getLogger(__name__)


async def read_queue_chunk(db: AsyncSession, limit: int) -> Sequence[SearchIndexQueue]:
    """Return up to `limit` markers, oldest first."""
    result = await db.execute(
        select(SearchIndexQueue)
        .order_by(SearchIndexQueue.id)
        .limit(limit)
    )
    return result.scalars().all()


def partition_by_kind(markers: Iterable[SearchIndexQueue]) -> dict[IndexItemKind, list[int]]:
    """Split markers into one key list per item kind (every kind present)."""
    ids_by_kind: dict[IndexItemKind, list[int]] = {kind: [] for kind in IndexItemKind}
    for marker in markers:
        ids_by_kind[IndexItemKind(marker.kind)].append(marker.item_id)
    return ids_by_kind


async def delete_queue_markers(
    db: AsyncSession, ids_by_kind: dict[IndexItemKind, list[int]]
) -> int:
    """Delete all markers matching one of the given (kind, item_id) pairs.

    Returns the number of deleted rows.
    """
    conditions = [
        and_(SearchIndexQueue.item_id.in_(ids), SearchIndexQueue.kind == kind)
        for kind, ids in ids_by_kind.items()
        if ids
    ]
    if not conditions:
        return 0

    result = await db.execute(
        delete(SearchIndexQueue)
        .where(or_(*conditions))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def enqueue_items(db: AsyncSession, kind: IndexItemKind, ids: Sequence[int]) -> int:
    """Queue the given items for reindexing. Duplicates are allowed."""
    if not ids:
        return 0

    await db.execute(
        insert(SearchIndexQueue),
        [{"item_id": item_id, "kind": kind} for item_id in ids],
    )
    logger.debug("Queued %d %s for reindexing", len(ids), kind.plural_name)
    return len(ids)


async def enqueue_all_items(db: AsyncSession) -> int:
    """Queue every realm and event in the database for reindexing."""
    sources = {
        IndexItemKind.REALM: Realm.id,
        IndexItemKind.EVENT: Event.id,
    }

    total = 0
    for kind in IndexItemKind:
        kind_value = cast(literal(kind.value), SearchIndexQueue.kind.type)
        result = await db.execute(
            insert(SearchIndexQueue).from_select(
                ["item_id", "kind"],
                select(sources[kind], kind_value).order_by(sources[kind]),
            )
        )
        total += result.rowcount
        logger.info("Queued %d %s for reindexing", result.rowcount, kind.plural_name)

    return total


async def queue_status(db: AsyncSession) -> dict[IndexItemKind, int]:
    """Number of pending markers per item kind."""
    result = await db.execute(
        select(SearchIndexQueue.kind, func.count(SearchIndexQueue.id))
        .group_by(SearchIndexQueue.kind)
    )
    counts = {kind: 0 for kind in IndexItemKind}
    for kind, count in result.all():
        counts[IndexItemKind(kind)] = count
    return counts


async def queue_len(db: AsyncSession) -> int:
    """Total number of pending markers."""
    result = await db.execute(select(func.count(SearchIndexQueue.id)))
    return result.scalar() or 0
