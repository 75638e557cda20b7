"""Selection repository backed by CachePort (diskcache/redis).

Remembers every catalog item handed to a client, keyed by stable id, so
that the meta, stream and download endpoints can find it again.
"""

from __future__ import annotations

import structlog

from trawlarr.domain.entities.torrent import (
    ClassifiedItem,
    classified_item_from_dict,
    classified_item_to_dict,
)
from trawlarr.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)


class CacheSelectionRepository:
    """Stores catalog selections via CachePort with a TTL."""

    def __init__(self, cache: CachePort, ttl_seconds: int = 86400) -> None:
        self.cache = cache
        self.ttl = ttl_seconds

    @staticmethod
    def _key(stable_id: str) -> str:
        return f"selection:{stable_id}"

    async def save(self, item: ClassifiedItem) -> None:
        await self.cache.set(
            self._key(item.stable_id), classified_item_to_dict(item), ttl=self.ttl
        )
        log.debug("selection_saved", stable_id=item.stable_id, ttl=self.ttl)

    async def save_many(self, items: list[ClassifiedItem]) -> None:
        for item in items:
            await self.save(item)

    async def get(self, stable_id: str) -> ClassifiedItem | None:
        data = await self.cache.get(self._key(stable_id))
        if data is None:
            log.debug("selection_not_found", stable_id=stable_id)
            return None
        try:
            return classified_item_from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            log.error("selection_deserialize_error", stable_id=stable_id, error=str(e))
            return None
