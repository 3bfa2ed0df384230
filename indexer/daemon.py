"""
Search index daemon process.

Keeps the search indexes in sync with the database by draining the search
index queue every `SEARCH_UPDATE_INTERVAL` seconds.

Run with:
    search-index-daemon
or:
    python -m indexer.daemon
"""

import asyncio
import logging
import signal
import sys

from .config import settings
from .database import engine
from .services.search_daemon import SearchIndexDaemon
from .services.search_service import close_meilisearch, init_meilisearch
from .services.search_writer import get_search_writer

logger = logging.getLogger(__name__)


async def run_daemon() -> None:
    """Prepare the indexes and run the daemon until stopped or failed."""
    await init_meilisearch()
    daemon = SearchIndexDaemon(get_search_writer())

    # Handle shutdown signals: stop at the next wait between two runs
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, daemon.request_stop)

    try:
        await daemon.run_forever()
    finally:
        await close_meilisearch()
        await engine.dispose()


def main() -> None:
    """Console entry point."""
    logging.basicConfig(level=settings.log_level)
    try:
        asyncio.run(run_daemon())
    except Exception:
        logger.critical("Search index daemon terminated", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
