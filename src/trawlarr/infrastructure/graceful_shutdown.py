"""In-flight request tracking, readiness flag and drain-on-stop."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

log = structlog.get_logger(__name__)


class GracefulShutdown:
    """Counts requests in flight so shutdown can wait for them.

    Download requests may sit in a debrid poll loop for several seconds;
    the lifespan drains them before closing the HTTP client and stores.
    """

    def __init__(self) -> None:
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()
        self._started = False
        self._stopping = False

    @property
    def active_requests(self) -> int:
        return self._in_flight

    @property
    def is_shutting_down(self) -> bool:
        return self._stopping

    @property
    def is_ready(self) -> bool:
        return self._started and not self._stopping

    def mark_ready(self) -> None:
        self._started = True

    @asynccontextmanager
    async def track(self) -> AsyncIterator[None]:
        """Wrap one request."""
        self._in_flight += 1
        self._idle.clear()
        try:
            yield
        finally:
            self._in_flight = max(self._in_flight - 1, 0)
            if self._in_flight == 0:
                self._idle.set()

    async def wait_for_drain(self, *, timeout: float = 10.0) -> None:
        """Flip to not-ready and wait up to ``timeout`` for requests to finish."""
        self._stopping = True
        if self._in_flight == 0:
            return
        log.info("graceful_shutdown_draining", active_requests=self._in_flight)
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout)
        except TimeoutError:
            log.warning(
                "graceful_shutdown_timeout",
                remaining_requests=self._in_flight,
                timeout=timeout,
            )
            return
        log.info("graceful_shutdown_drained")
