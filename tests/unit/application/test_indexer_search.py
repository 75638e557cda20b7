"""Tests for IndexerSearchUseCase."""

from __future__ import annotations

import asyncio

from trawlarr.application.use_cases.indexer_search import IndexerSearchUseCase
from trawlarr.domain.entities import IndexerError, RawResult
from trawlarr.infrastructure.indexer.circuit_breaker import (
    BreakerState,
    IndexerCircuitBreaker,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _client_for(responses: dict[str, object]):
    """Side effect serving per-indexer results, exceptions or delays."""

    async def search(indexer: str, query: str) -> list[RawResult]:
        value = responses[indexer]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, float):
            await asyncio.sleep(value)
            return []
        return value  # type: ignore[return-value]

    return search


class TestSearchAllTorrents:
    async def test_canonicalizes_each_result(self, mock_indexer_client, raw_factory) -> None:
        mock_indexer_client.search.return_value = [
            raw_factory("Movie.A.2019.1080p"),
            raw_factory("Movie.B.2020.720p"),
        ]
        uc = IndexerSearchUseCase(mock_indexer_client)

        torrents = await uc.search_all_torrents("yts", "movie")

        assert [t.title for t in torrents] == ["Movie.A.2019.1080p", "Movie.B.2020.720p"]
        assert all(t.indexer == "yts" for t in torrents)
        mock_indexer_client.search.assert_awaited_once_with("yts", "movie")

    async def test_skips_undecodable_records(self, mock_indexer_client, raw_factory) -> None:
        mock_indexer_client.search.return_value = [
            RawResult("json", {"Title": ""}),
            RawResult("yaml", {}),  # type: ignore[arg-type]
            raw_factory("Movie.A.2019.1080p"),
        ]
        uc = IndexerSearchUseCase(mock_indexer_client)

        torrents = await uc.search_all_torrents("yts", "movie")
        assert [t.title for t in torrents] == ["Movie.A.2019.1080p"]


class TestSearchBatch:
    async def test_short_query_skips_network(self, mock_indexer_client) -> None:
        uc = IndexerSearchUseCase(mock_indexer_client)
        assert await uc.search_batch("  a ", ["yts"]) == []
        mock_indexer_client.search.assert_not_awaited()

    async def test_query_is_trimmed(self, mock_indexer_client) -> None:
        uc = IndexerSearchUseCase(mock_indexer_client)
        await uc.search_batch("  movie  ", ["yts"])
        mock_indexer_client.search.assert_awaited_once_with("yts", "movie")

    async def test_one_failing_indexer_does_not_fail_batch(
        self, mock_indexer_client, raw_factory
    ) -> None:
        mock_indexer_client.search.side_effect = _client_for(
            {
                "yts": [raw_factory("Movie.A.2019.1080p")],
                "broken": IndexerError("broken", "HTTP 500"),
                "eztv": [raw_factory("Show.S01E01.720p")],
            }
        )
        uc = IndexerSearchUseCase(mock_indexer_client)

        items = await uc.search_batch("movie", ["yts", "broken", "eztv"])
        assert [i.torrent.title for i in items] == [
            "Movie.A.2019.1080p",
            "Show.S01E01.720p",
        ]
        assert [i.content_type for i in items] == ["movie", "series"]

    async def test_slow_indexer_times_out(self, mock_indexer_client, raw_factory) -> None:
        mock_indexer_client.search.side_effect = _client_for(
            {"slow": 5.0, "yts": [raw_factory("Movie.A.2019.1080p")]}
        )
        breaker = IndexerCircuitBreaker(failure_threshold=1)
        uc = IndexerSearchUseCase(
            mock_indexer_client, timeout_seconds=0.05, breaker=breaker
        )

        items = await uc.search_batch("movie", ["slow", "yts"])

        assert len(items) == 1
        assert breaker.state("slow") is BreakerState.OPEN
        assert breaker.state("yts") is BreakerState.CLOSED

    async def test_unexpected_exception_is_contained(self, mock_indexer_client) -> None:
        mock_indexer_client.search.side_effect = RuntimeError("boom")
        uc = IndexerSearchUseCase(mock_indexer_client)
        assert await uc.search_batch("movie", ["yts"]) == []

    async def test_duplicates_across_indexers_removed(
        self, mock_indexer_client, raw_factory
    ) -> None:
        same = raw_factory("Movie.A.2019.1080p", Imdb=1234567)
        mock_indexer_client.search.side_effect = _client_for(
            {"yts": [same], "rarbg": [raw_factory("Movie.A.2019.2160p", Imdb=1234567)]}
        )
        uc = IndexerSearchUseCase(mock_indexer_client)

        items = await uc.search_batch("movie", ["yts", "rarbg"])
        assert len(items) == 1
        assert items[0].torrent.indexer == "yts"

    async def test_open_breaker_skips_indexer(self, mock_indexer_client) -> None:
        breaker = IndexerCircuitBreaker(failure_threshold=1)
        breaker.record_failure("broken")
        uc = IndexerSearchUseCase(mock_indexer_client, breaker=breaker)

        await uc.search_batch("movie", ["broken", "yts"])
        mock_indexer_client.search.assert_awaited_once_with("yts", "movie")
