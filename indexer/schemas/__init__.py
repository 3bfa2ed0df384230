"""Pydantic schemas for request/response validation."""

from .search_index import IndexUpdateResponse, QueueStatusResponse

__all__ = [
    "IndexUpdateResponse",
    "QueueStatusResponse",
]
