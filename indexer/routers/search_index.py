"""Search index admin API endpoints.

Provides queue inspection and manual triggers for the queue drain and a
full rebuild. Manual runs share the write lock with the daemon of this
process (and the advisory lock with all other processes).
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..database import get_db, get_session_maker
from ..schemas.search_index import IndexUpdateResponse, QueueStatusResponse
from ..services.search_queue import queue_status
from ..services.search_service import SearchIndexError
from ..services.search_update import rebuild_index, update_index
from ..services.search_writer import SearchIndexWriter, get_search_writer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/search-index", tags=["Search Index"])


def get_writer() -> SearchIndexWriter:
    """Writer dependency; 503 while Meilisearch is not initialized."""
    try:
        return get_search_writer()
    except RuntimeError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )


@router.get(
    "",
    response_model=QueueStatusResponse,
    summary="Search index queue status",
)
async def get_queue_status(
    db: AsyncSession = Depends(get_db),
) -> QueueStatusResponse:
    """Return the number of items waiting for a search index update."""
    counts = await queue_status(db)
    return QueueStatusResponse(
        total=sum(counts.values()),
        by_kind={kind.value: count for kind, count in counts.items()},
    )


@router.post(
    "/update",
    response_model=IndexUpdateResponse,
    summary="Process the search index queue now",
)
async def run_index_update(
    writer: SearchIndexWriter = Depends(get_writer),
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> IndexUpdateResponse:
    """Drain the search index queue (admin endpoint)."""
    logger.info("Manually triggering search index update...")
    try:
        result = await update_index(writer, session_maker)
    except SearchIndexError as e:
        logger.error(f"Manual search index update failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )
    return IndexUpdateResponse(
        chunks=result.chunks, processed=result.processed, deleted=result.deleted
    )


@router.post(
    "/rebuild",
    response_model=IndexUpdateResponse,
    summary="Rebuild all search indexes",
)
async def run_index_rebuild(
    writer: SearchIndexWriter = Depends(get_writer),
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
) -> IndexUpdateResponse:
    """Clear all indexes and reindex every realm and event (admin endpoint)."""
    logger.info("Manually triggering search index rebuild...")
    try:
        result = await rebuild_index(writer, session_maker)
    except SearchIndexError as e:
        logger.error(f"Search index rebuild failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )
    return IndexUpdateResponse(
        chunks=result.chunks, processed=result.processed, deleted=result.deleted
    )
