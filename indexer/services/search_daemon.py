"""
Search Index Daemon

Runs `update_index` roughly every `search_update_interval` seconds. The
interval is measured from the start of one run to the start of the next,
using the monotonic clock.

Errors are not caught: a failing run ends the loop and the exception reaches
the caller. Whatever is left in the queue is picked up once the process is
restarted.

Stopping only takes effect while the loop is waiting between two runs,
never while a queue chunk is being processed.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import settings
from ..database import async_session_maker
from .search_update import update_index
from .search_writer import SearchIndexWriter

logger = logging.getLogger(__name__)


def next_update_delay(update_interval: float, elapsed: float) -> float:
    """Time to wait after a run that took `elapsed` seconds (never negative)."""
    return max(0.0, update_interval - elapsed)


class SearchIndexDaemon:
    """
    Asyncio-based service that keeps the search index up to date.

    Use `run_forever` to run the loop in the current task, or `start`/`stop`
    to run it as a background task.
    """

    def __init__(
        self,
        writer: SearchIndexWriter,
        session_maker: async_sessionmaker[AsyncSession] = async_session_maker,
        update_interval: float | None = None,
        chunk_size: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._writer = writer
        self._session_maker = session_maker
        self._update_interval = (
            settings.search_update_interval if update_interval is None else update_interval
        )
        self._chunk_size = chunk_size
        self._clock = clock
        self._stop_requested = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the loop is running."""
        return self._running

    async def run_forever(self) -> None:
        """Drain the queue periodically.

        Only returns after `request_stop` was called. Errors of a run are
        propagated and end the loop.
        """
        self._running = True
        logger.info(
            "Search index daemon started (update interval %.1fs)", self._update_interval
        )
        try:
            while not self._stop_requested.is_set():
                loop_started_at = self._clock()

                await update_index(self._writer, self._session_maker, self._chunk_size)

                next_update_in = next_update_delay(
                    self._update_interval, self._clock() - loop_started_at
                )
                logger.debug(
                    "Cleared search index queue: waiting for %.1fs", next_update_in
                )
                await self._sleep(next_update_in)
        finally:
            self._running = False

        logger.info("Search index daemon stopped")

    async def _sleep(self, seconds: float) -> None:
        """Wait for `seconds` or until a stop is requested."""
        try:
            await asyncio.wait_for(self._stop_requested.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    def request_stop(self) -> None:
        """Ask the loop to end at the next wait between two runs."""
        self._stop_requested.set()

    async def start(self) -> None:
        """Start the loop as a background task."""
        self._stop_requested.clear()
        self._task = asyncio.create_task(self.run_forever())

    async def stop(self) -> None:
        """Request a stop and wait for the current run to finish."""
        self.request_stop()
        if self._task:
            task, self._task = self._task, None
            await task
