"""Per-indexer circuit breaker.

An indexer that fails ``failure_threshold`` times in a row (timeouts
included) is skipped for ``cooldown_seconds``. After the cooldown one
trial call is let through; success closes the breaker, failure restarts
the cooldown.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class BreakerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class _Breaker:
    failures: int = 0
    state: BreakerState = BreakerState.CLOSED
    opened_at: float = 0.0


class IndexerCircuitBreaker:
    """Tracks consecutive failures per indexer id.

    Not thread-safe; mutations happen on the event loop only.
    """

    def __init__(
        self,
        *,
        failure_threshold: int = 5,
        cooldown_seconds: float = 120.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._threshold = failure_threshold
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._breakers: dict[str, _Breaker] = {}

    def allow(self, indexer: str) -> bool:
        """Whether ``indexer`` may be queried now."""
        breaker = self._breakers.get(indexer)
        if breaker is None or breaker.state is BreakerState.CLOSED:
            return True
        if breaker.state is BreakerState.OPEN:
            if self._clock() - breaker.opened_at < self._cooldown:
                return False
            breaker.state = BreakerState.HALF_OPEN
        return True

    def record_success(self, indexer: str) -> None:
        self._breakers.pop(indexer, None)

    def record_failure(self, indexer: str) -> None:
        breaker = self._breakers.setdefault(indexer, _Breaker())
        if breaker.state is BreakerState.HALF_OPEN:
            self._open(breaker)
            return
        breaker.failures += 1
        if breaker.failures >= self._threshold:
            self._open(breaker)

    def _open(self, breaker: _Breaker) -> None:
        breaker.state = BreakerState.OPEN
        breaker.opened_at = self._clock()

    def state(self, indexer: str) -> BreakerState:
        breaker = self._breakers.get(indexer)
        return breaker.state if breaker else BreakerState.CLOSED

    def snapshot(self) -> dict[str, dict[str, object]]:
        """Diagnostic view for the health endpoint."""
        return {
            name: {"state": b.state.value, "failures": b.failures}
            for name, b in sorted(self._breakers.items())
        }
