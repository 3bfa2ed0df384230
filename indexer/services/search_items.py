"""Items that can be stored in a search index.

Each item type knows its kind, can be bulk-loaded from the database by key
and turns itself into a Meilisearch document. Loaders only return items that
still exist, so they may return fewer items than requested.
"""

import logging
from dataclasses import dataclass, field
from datetime import timezone
from typing import ClassVar, NewType, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.event import Event
from ..models.realm import Realm
from ..models.search_index_queue import IndexItemKind

logger = logging.getLogger(__name__)

# Identifier of a document inside a Meilisearch index
SearchId = NewType("SearchId", str)


def to_search_id(key: int) -> SearchId:
    """Derive the document ID from an item key."""
    return SearchId(str(key))


class IndexItem(Protocol):
    """Something that can be loaded from the DB and put into a search index."""

    KIND: ClassVar[IndexItemKind]
    key: int

    @property
    def search_id(self) -> SearchId: ...

    def to_document(self) -> dict: ...

    @classmethod
    async def load_by_ids(
        cls, db: AsyncSession, ids: Sequence[int]
    ) -> Sequence["IndexItem"]: ...


def _ancestor_paths(full_path: str) -> list[str]:
    """Full paths of all non-root ancestors, root first.

    "/a/b/c" -> ["/a", "/a/b"]
    """
    segments = full_path.split("/")[1:-1]
    return ["/" + "/".join(segments[:i + 1]) for i in range(len(segments))]


@dataclass
class SearchRealm:
    """Realm as stored in the search index."""

    KIND: ClassVar[IndexItemKind] = IndexItemKind.REALM

    key: int
    name: str
    full_path: str
    ancestor_names: list[str] = field(default_factory=list)

    @property
    def search_id(self) -> SearchId:
        return to_search_id(self.key)

    def to_document(self) -> dict:
        return {
            "id": self.search_id,
            "name": self.name,
            "full_path": self.full_path,
            "ancestor_names": self.ancestor_names,
            "is_root": self.full_path == "",
        }

    @classmethod
    async def load_by_ids(cls, db: AsyncSession, ids: Sequence[int]) -> list["SearchRealm"]:
        if not ids:
            return []

        result = await db.execute(select(Realm).where(Realm.id.in_(ids)))
        realms = result.scalars().all()

        # Resolve the names of all ancestors with one additional query
        ancestor_paths = {
            path for realm in realms for path in _ancestor_paths(realm.full_path)
        }
        names_by_path: dict[str, str] = {}
        if ancestor_paths:
            result = await db.execute(
                select(Realm.full_path, Realm.name, Realm.path_segment)
                .where(Realm.full_path.in_(ancestor_paths))
            )
            names_by_path = {
                row.full_path: row.name or row.path_segment for row in result.all()
            }

        return [
            cls(
                key=realm.id,
                name=realm.name or realm.path_segment,
                full_path=realm.full_path,
                ancestor_names=[
                    names_by_path[path]
                    for path in _ancestor_paths(realm.full_path)
                    if path in names_by_path
                ],
            )
            for realm in realms
        ]


@dataclass
class SearchEvent:
    """Event as stored in the search index."""

    KIND: ClassVar[IndexItemKind] = IndexItemKind.EVENT

    key: int
    series_id: int | None
    title: str
    description: str | None
    creators: list[str]
    thumbnail: str | None
    duration: int
    created: int
    is_live: bool
    read_roles: list[str]

    @property
    def search_id(self) -> SearchId:
        return to_search_id(self.key)

    def to_document(self) -> dict:
        return {
            "id": self.search_id,
            "series_id": to_search_id(self.series_id) if self.series_id is not None else None,
            "title": self.title,
            "description": self.description,
            "creators": self.creators,
            "thumbnail": self.thumbnail,
            "duration": self.duration,
            "created": self.created,
            "is_live": self.is_live,
            "read_roles": self.read_roles,
        }

    @classmethod
    async def load_by_ids(cls, db: AsyncSession, ids: Sequence[int]) -> list["SearchEvent"]:
        if not ids:
            return []

        result = await db.execute(select(Event).where(Event.id.in_(ids)))
        return [
            cls(
                key=event.id,
                series_id=event.series_id,
                title=event.title,
                description=event.description,
                creators=list(event.creators or []),
                thumbnail=event.thumbnail,
                duration=event.duration,
                # SQLite drops the timezone, values are stored as UTC
                created=int(
                    (event.created if event.created.tzinfo else event.created.replace(tzinfo=timezone.utc))
                    .timestamp()
                ),
                is_live=event.is_live,
                read_roles=list(event.read_roles or []),
            )
            for event in result.scalars().all()
        ]


# Every kind must map to exactly one item type
ITEM_TYPES: dict[IndexItemKind, type[IndexItem]] = {
    IndexItemKind.REALM: SearchRealm,
    IndexItemKind.EVENT: SearchEvent,
}

_unmapped = set(IndexItemKind) - ITEM_TYPES.keys()
if _unmapped:
    raise RuntimeError(f"No search item type for kinds: {sorted(k.value for k in _unmapped)}")
