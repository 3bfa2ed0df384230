"""API routers package."""

from .search_index import router as search_index_router

__all__ = [
    "search_index_router",
]
