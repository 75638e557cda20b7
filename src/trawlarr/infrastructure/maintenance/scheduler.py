"""Background maintenance: torrent info retention sweep and cache expiry."""

from __future__ import annotations

import asyncio

import structlog

from trawlarr.domain.ports.cache import CachePort
from trawlarr.domain.ports.torrent_info_store import TorrentInfoStorePort

log = structlog.get_logger(__name__)


class MaintenanceScheduler:
    """Sweeps the torrent info store (and expires cache entries) periodically.

    Call :meth:`run_forever` as an asyncio task during app lifespan.
    Cancellation is clean: the task exits at its current sleep.
    """

    def __init__(
        self,
        *,
        store: TorrentInfoStorePort,
        cache: CachePort | None = None,
        interval_seconds: float = 3600.0,
    ) -> None:
        self._store = store
        self._cache = cache
        self._interval = interval_seconds

    async def run_forever(self) -> None:
        """Tick, sleep, repeat. A failing tick is logged and the loop goes on."""
        log.info("maintenance_scheduler_started", interval_seconds=self._interval)
        try:
            while True:
                try:
                    await self.tick()
                except Exception:
                    log.error("maintenance_scheduler_tick_error", exc_info=True)
                await asyncio.sleep(self._interval)
        except asyncio.CancelledError:
            log.info("maintenance_scheduler_cancelled")
            raise

    async def tick(self) -> None:
        removed = await self._store.sweep()
        expired = await self._cache.expire() if self._cache is not None else 0
        log.info("maintenance_tick_done", records_removed=removed, cache_expired=expired)
