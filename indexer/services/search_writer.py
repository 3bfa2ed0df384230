"""Serialized write access to the search indexes.

All index mutations that go through the queue happen inside
`SearchIndexWriter.with_write_lock`, which guarantees that at most one such
unit runs at a time:
- inside one process via an `asyncio.Lock` owned by the writer
- across processes via a transaction-scoped PostgreSQL advisory lock

Both are released on every exit path (the advisory lock ends with the
transaction, be it commit or rollback).
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, Sequence, TypeVar

from meilisearch_python_sdk.index import AsyncIndex
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models.search_index_queue import IndexItemKind
from .search_items import ITEM_TYPES, SearchId, to_search_id
from .search_service import get_meili_indexes

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Arbitrary, but must be the same for every process writing to the indexes
SEARCH_INDEX_LOCK_KEY = 0x7365_6172_6368


@dataclass
class ReconcileResult:
    """What a single `update` call sent to the index."""

    upserted: list[SearchId] = field(default_factory=list)
    deleted: list[SearchId] = field(default_factory=list)


async def _acquire_advisory_xact_lock(db: AsyncSession) -> None:
    """Block until this transaction holds the search index lock.

    Only PostgreSQL has advisory locks; other dialects rely on the
    in-process lock alone.
    """
    dialect_name = db.get_bind().dialect.name
    if not dialect_name.startswith("postgres"):
        return

    await db.execute(
        text("SELECT pg_advisory_xact_lock(:lock_key)"),
        {"lock_key": SEARCH_INDEX_LOCK_KEY},
    )


class SearchIndexWriter:
    """
    Holds the Meilisearch index of every item kind and the write lock.

    Use one writer per process so that the in-process lock actually
    serializes all queue drains of that process.
    """

    def __init__(self, indexes: Mapping[IndexItemKind, AsyncIndex]) -> None:
        missing = set(IndexItemKind) - set(indexes)
        if missing:
            raise ValueError(
                f"No search index for kinds: {sorted(k.value for k in missing)}"
            )
        self._indexes = dict(indexes)
        self._lock = asyncio.Lock()

    @property
    def indexes(self) -> dict[IndexItemKind, AsyncIndex]:
        return dict(self._indexes)

    def index_for(self, kind: IndexItemKind) -> AsyncIndex:
        """Get the index that stores items of `kind`."""
        return self._indexes[kind]

    @property
    def is_locked(self) -> bool:
        return self._lock.locked()

    async def with_write_lock(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        fn: Callable[[AsyncSession, "SearchIndexWriter"], Awaitable[T]],
    ) -> T:
        """Run `fn` in a fresh transaction while holding the write lock.

        The transaction is committed if `fn` returns and rolled back if it
        raises. The exception is propagated.
        """
        async with self._lock:
            async with session_maker() as db:
                async with db.begin():
                    await _acquire_advisory_xact_lock(db)
                    return await fn(db, self)

    async def update(
        self, db: AsyncSession, kind: IndexItemKind, ids: Sequence[int]
    ) -> ReconcileResult:
        """
        Bring the index entries of the given items up to date.

        Loads the items from the DB. Items that were loaded are added to (or
        replaced in) the index, all requested items that do not exist
        anymore are deleted from it. Errors of the loader or of Meilisearch
        are propagated unchanged.

        Args:
            db: Session of the current transaction
            kind: Kind of all items in `ids`
            ids: Keys of the items, duplicates are ignored

        Returns:
            The document IDs that were upserted and deleted.
        """
        if not ids:
            logger.debug("No %s in need of a search index update", kind.plural_name)
            return ReconcileResult()

        requested = list(dict.fromkeys(ids))
        item_type = ITEM_TYPES[kind]

        # Load all new items from the DB
        loaded = await item_type.load_by_ids(db, requested)
        requested_set = set(requested)
        items = [item for item in loaded if item.key in requested_set]
        if len(items) != len(loaded):
            logger.warning(
                "Loader for %s returned %d items that were not requested",
                kind.plural_name, len(loaded) - len(items),
            )
        logger.debug(
            "Loaded %d %s from DB to be added to search index",
            len(items), kind.plural_name,
        )

        # Figure out which ones were deleted
        existing = {item.key for item in items}
        deleted = [to_search_id(key) for key in requested if key not in existing]

        index = self.index_for(kind)
        result = ReconcileResult(deleted=deleted)

        if deleted:
            await index.delete_documents(deleted)
            logger.debug(
                "Started deletion of %d %s in Meili", len(deleted), kind.plural_name
            )

        if items:
            await index.add_documents([item.to_document() for item in items])
            result.upserted = [item.search_id for item in items]
            logger.debug(
                "Sent %d %s to Meili for indexing", len(items), kind.plural_name
            )

        return result


_search_writer: SearchIndexWriter | None = None


def get_search_writer() -> SearchIndexWriter:
    """Process-wide writer, created on first use after Meilisearch init."""
    global _search_writer
    if _search_writer is None:
        _search_writer = SearchIndexWriter(get_meili_indexes())
    return _search_writer


def reset_search_writer() -> None:
    """Forget the process-wide writer (after the indexes were re-initialized)."""
    global _search_writer
    _search_writer = None
