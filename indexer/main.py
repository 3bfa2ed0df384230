"""FastAPI application entry point for the search index admin API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .routers import search_index_router
from .services.search_service import check_search_health, close_meilisearch, init_meilisearch
from .services.search_writer import reset_search_writer

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown tasks."""
    # Startup
    logger.info("Initializing Meilisearch...")
    try:
        await init_meilisearch()
        logger.info("Meilisearch ready")
    except Exception as e:
        # Admin endpoints answer 503 until Meilisearch is reachable
        logger.warning(f"Meilisearch initialization failed: {e}")

    yield

    # Shutdown
    reset_search_writer()
    await close_meilisearch()
    logger.info("Meilisearch client closed")


app = FastAPI(
    title="Search Index API",
    description="Admin API for the search index queue",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(search_index_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "search": await check_search_health(),
    }
