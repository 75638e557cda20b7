"""Cache port - async key-value store with TTL, backend-agnostic."""

from __future__ import annotations

from typing import Any, Protocol


class CachePort(Protocol):
    """Port for an async key-value cache with TTL support.

    Implementations:
      - DiskcacheAdapter (SQLite, no daemon)
      - RedisAdapter (redis.asyncio)

    Values are JSON-compatible (dicts, lists, strings, numbers).
    Adapters are opened and closed via ``async with cache:``.
    """

    async def get(self, key: str) -> Any:
        """Return the stored value, or None when missing/expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Store ``value`` for ``ttl`` seconds (adapter default when None)."""
        ...

    async def delete(self, key: str) -> bool: ...

    async def exists(self, key: str) -> bool: ...

    async def clear(self) -> None: ...

    async def expire(self) -> int:
        """Drop expired entries now; returns the number removed."""
        ...

    async def aclose(self) -> None: ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
