"""Search index queue SQLAlchemy model.

Every row is a marker saying "the search index entry of this item is stale".
Rows are inserted by database triggers (and `enqueue_items`) and removed by
the queue drain once the index mutation for the item was sent to Meilisearch.
"""

from enum import Enum as PyEnum

from sqlalchemy import BigInteger, Column, Enum, Index, Integer

from ..database import Base


class IndexItemKind(str, PyEnum):
    """All types of items that live in a search index."""

    REALM = "realm"
    EVENT = "event"

    @property
    def plural_name(self) -> str:
        return f"{self.value}s"


class SearchIndexQueue(Base):
    """
    Pending search index update for one item.

    Attributes:
        id: Monotonically increasing sequence number (queue order)
        item_id: Key of the realm/event/... that needs reindexing
        kind: Which kind of item `item_id` refers to

    The same (item_id, kind) pair may be queued several times. All markers
    for a pair are handled by a single reconciliation.
    """

    __tablename__ = "search_index_queue"

    __table_args__ = (
        Index("ix_search_index_queue_kind_item", "kind", "item_id"),
    )

    # SQLite only autoincrements INTEGER primary keys
    id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    item_id = Column(BigInteger, nullable=False)
    kind = Column(
        Enum(
            IndexItemKind,
            name="search_index_item_kind",
            values_callable=lambda kinds: [k.value for k in kinds],
        ),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SearchIndexQueue(id={self.id}, kind={self.kind}, item_id={self.item_id})>"
