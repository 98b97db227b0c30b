from __future__ import annotations

import asyncio
import logging

from release_tracker.use_cases.fetch_pages import Sleep
from release_tracker.use_cases.pagination_service import EvictionReport, PaginationService

logger = logging.getLogger(__name__)


class StaleCollectionSweeper:
    """Periodically evicts collections that stayed stale for too long."""

    def __init__(
        self,
        service: PaginationService,
        interval: float,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._service = service
        self._interval = interval
        self._sleep = sleep

    def run_once(self) -> EvictionReport:
        return self._service.evict_stale()

    async def run_forever(self) -> None:
        """Sweep every ``interval`` seconds until cancelled."""
        logger.info("Stale collection sweeper started", extra={"interval": self._interval})
        while True:
            await self._sleep(self._interval)
            try:
                self.run_once()
            except Exception:
                # A failed sweep must not stop the next one
                logger.exception("Stale collection sweep failed")
