"""Indexer fan-out: one concurrent, time-boxed search per Jackett indexer."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from trawlarr.domain.entities import (
    CanonicalTorrent,
    ClassifiedItem,
    IndexerError,
)
from trawlarr.domain.ports.indexer_client import IndexerClientPort
from trawlarr.infrastructure.indexer.canonicalizer import canonicalize
from trawlarr.infrastructure.indexer.circuit_breaker import IndexerCircuitBreaker
from trawlarr.infrastructure.indexer.classifier import classify
from trawlarr.infrastructure.indexer.ranker import deduplicate

log = structlog.get_logger(__name__)


class IndexerSearchUseCase:
    """Queries indexers in parallel and merges their results.

    A failing or slow indexer never fails the batch: its contribution is
    an empty list and the failure is logged. Indexers that keep failing
    are skipped by the circuit breaker until their cooldown elapses.
    """

    def __init__(
        self,
        client: IndexerClientPort,
        *,
        timeout_seconds: float = 7.0,
        min_query_length: int = 2,
        breaker: IndexerCircuitBreaker | None = None,
    ) -> None:
        self._client = client
        self._timeout = timeout_seconds
        self._min_query_length = min_query_length
        self._breaker = breaker or IndexerCircuitBreaker()

    async def search_all_torrents(
        self, indexer: str, query: str
    ) -> list[CanonicalTorrent]:
        """Search one indexer and canonicalize every record it returns.

        Records that fail to decode are logged and skipped.

        Raises:
            IndexerError: The indexer call itself failed.
        """
        raw_results = await self._client.search(indexer, query)
        torrents: list[CanonicalTorrent] = []
        skipped = 0
        for raw in raw_results:
            try:
                torrent = canonicalize(raw, indexer)
            except Exception:
                skipped += 1
                log.warning(
                    "indexer_result_decode_error",
                    indexer=indexer,
                    shape=raw.shape,
                    exc_info=True,
                )
                continue
            if torrent is None:
                skipped += 1
                continue
            torrents.append(torrent)

        log.debug(
            "indexer_search_done",
            indexer=indexer,
            query=query,
            results=len(torrents),
            skipped=skipped,
        )
        return torrents

    async def search_batch(
        self, query: str, indexers: Sequence[str]
    ) -> list[ClassifiedItem]:
        """Fan out ``query`` to ``indexers`` and return the classified, deduped union.

        Results keep indexer order; within an indexer, response order.
        """
        query = query.strip()
        if len(query) < self._min_query_length:
            return []

        active = [name for name in indexers if self._breaker.allow(name)]
        skipped = [name for name in indexers if name not in active]
        if skipped:
            log.info("indexer_search_breaker_skip", indexers=skipped)

        per_indexer = await asyncio.gather(
            *(self._search_one(name, query) for name in active)
        )

        items: list[ClassifiedItem] = []
        for torrents in per_indexer:
            items.extend(classify(t) for t in torrents)
        merged = deduplicate(items)

        log.info(
            "indexer_search_batch_done",
            query=query,
            indexers=len(active),
            raw=len(items),
            unique=len(merged),
        )
        return merged

    async def _search_one(self, indexer: str, query: str) -> list[CanonicalTorrent]:
        try:
            torrents = await asyncio.wait_for(
                self.search_all_torrents(indexer, query),
                timeout=self._timeout,
            )
        except TimeoutError:
            self._breaker.record_failure(indexer)
            log.warning(
                "indexer_search_timeout",
                indexer=indexer,
                query=query,
                timeout=self._timeout,
            )
            return []
        except IndexerError as e:
            self._breaker.record_failure(indexer)
            log.warning("indexer_search_failed", indexer=indexer, error=str(e))
            return []
        except Exception:
            self._breaker.record_failure(indexer)
            log.warning("indexer_search_error", indexer=indexer, exc_info=True)
            return []

        self._breaker.record_success(indexer)
        return torrents
