"""Catalog search use case: cached fan-out, then filter/rank per request."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from trawlarr.application.use_cases.indexer_search import IndexerSearchUseCase
from trawlarr.domain.entities import (
    CatalogMode,
    ClassifiedItem,
    ContentType,
    classified_item_from_dict,
    classified_item_to_dict,
)
from trawlarr.domain.ports.cache import CachePort
from trawlarr.infrastructure.indexer.ranker import DEFAULT_LIMITS, select_catalog

log = structlog.get_logger(__name__)


def catalog_cache_key(indexers: Sequence[str], query: str) -> str:
    """``catalog:<indexers>:all:<normalized query>``.

    The stored set is unfiltered, so the type segment is always ``all``.
    Queries differing only in case or surrounding whitespace share a key.
    """
    return f"catalog:{','.join(indexers)}:all:{query.strip().lower()}"


class CatalogSearchUseCase:
    """Serves catalog listings from the result cache or a fresh fan-out.

    The cache holds the merged, classified, deduplicated superset for a
    query; type filtering, quality filtering, ranking and truncation run
    on every request, cache hit or not.
    """

    def __init__(
        self,
        indexer_search: IndexerSearchUseCase,
        cache: CachePort | None = None,
        *,
        cache_ttl: int = 3600,
        min_query_length: int = 2,
        limits: dict[CatalogMode, int] | None = None,
        skip_single_episodes: bool = False,
    ) -> None:
        self._indexer_search = indexer_search
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._min_query_length = min_query_length
        self._limits = {**DEFAULT_LIMITS, **(limits or {})}
        self._skip_single_episodes = skip_single_episodes

    async def search_catalog(
        self,
        query: str,
        content_type: ContentType | None,
        indexers: Sequence[str] = ("all",),
        mode: CatalogMode = CatalogMode.SEARCH,
        qualities: Sequence[int] | None = None,
    ) -> list[ClassifiedItem]:
        """Return the ranked catalog for ``query``.

        Args:
            query: Free-text search; trimmed queries shorter than the minimum
                return ``[]`` without touching the cache or the network.
            content_type: ``"movie"``, ``"series"`` or ``None`` for both.
            indexers: Jackett indexer ids to query.
            mode: SEARCH (seeders) or BROWSE (publish date) ordering.
            qualities: Allowed resolutions (0 = unknown); ``None`` allows all.
        """
        if len(query.strip()) < self._min_query_length:
            return []

        indexers = list(indexers) or ["all"]
        cache_key = catalog_cache_key(indexers, query)
        items = await self._cache_read(cache_key)

        if items is None:
            items = await self._indexer_search.search_batch(query, indexers)
            if items:
                await self._cache_write(cache_key, items)

        if qualities is not None:
            allowed = set(qualities)
            items = [i for i in items if i.torrent.quality in allowed]
        if self._skip_single_episodes:
            items = [i for i in items if not i.is_single_episode]

        selected = select_catalog(items, content_type, mode, self._limits[mode])
        log.info(
            "catalog_search_done",
            query=query.strip(),
            content_type=content_type,
            mode=mode.value,
            candidates=len(items),
            returned=len(selected),
        )
        return selected

    async def _cache_read(self, cache_key: str) -> list[ClassifiedItem] | None:
        """Cached superset, or None on miss or error."""
        if not self._cache or self._cache_ttl <= 0:
            return None
        try:
            cached: Any = await self._cache.get(cache_key)
            if cached is None:
                return None
            items = [classified_item_from_dict(d) for d in cached]
        except Exception:
            log.warning("catalog_cache_read_error", cache_key=cache_key, exc_info=True)
            return None
        log.info("catalog_cache_hit", cache_key=cache_key, result_count=len(items))
        return items

    async def _cache_write(self, cache_key: str, items: list[ClassifiedItem]) -> None:
        if not self._cache or self._cache_ttl <= 0:
            return
        try:
            await self._cache.set(
                cache_key,
                [classified_item_to_dict(i) for i in items],
                ttl=self._cache_ttl,
            )
            log.debug(
                "catalog_cache_stored",
                cache_key=cache_key,
                ttl=self._cache_ttl,
                result_count=len(items),
            )
        except Exception:
            log.warning("catalog_cache_store_error", cache_key=cache_key, exc_info=True)
