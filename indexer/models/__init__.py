"""SQLAlchemy ORM models package."""

from .event import Event
from .realm import Realm
from .search_index_queue import IndexItemKind, SearchIndexQueue

__all__ = [
    "Event",
    "IndexItemKind",
    "Realm",
    "SearchIndexQueue",
]
