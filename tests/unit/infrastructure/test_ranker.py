"""Tests for type filtering, dedup and ranking."""

from __future__ import annotations

from trawlarr.domain.entities import CatalogMode
from trawlarr.infrastructure.indexer.ranker import (
    deduplicate,
    filter_by_type,
    rank,
    select_catalog,
)


class TestFilterByType:
    def test_keeps_requested_type(self, item_factory) -> None:
        movie = item_factory("Movie.2019.1080p")
        series = item_factory("Show.S01E01.720p")
        assert filter_by_type([movie, series], "movie") == [movie]
        assert filter_by_type([movie, series], "series") == [series]

    def test_none_is_mixed_mode(self, item_factory) -> None:
        movie = item_factory("Movie.2019.1080p")
        series = item_factory("Show.S01E01.720p")
        assert filter_by_type([movie, series], None) == [movie, series]


class TestDeduplicate:
    def test_first_seen_wins(self, item_factory) -> None:
        first = item_factory("Movie.A.1080p", imdb_id="tt1111111", seeders=1)
        second = item_factory("Movie.A.2160p", imdb_id="tt1111111", seeders=500)
        assert deduplicate([first, second]) == [first]

    def test_no_duplicate_stable_ids(self, item_factory) -> None:
        items = [
            item_factory(f"Movie.{i % 3}", guid=f"g{i % 3}") for i in range(9)
        ]
        out = deduplicate(items)
        ids = [i.stable_id for i in out]
        assert len(ids) == len(set(ids)) == 3

    def test_empty(self) -> None:
        assert deduplicate([]) == []


class TestRank:
    def test_search_sorts_by_seeders(self, item_factory) -> None:
        low = item_factory("A", seeders=1)
        high = item_factory("B", seeders=50)
        mid = item_factory("C", seeders=10)
        assert rank([low, high, mid], CatalogMode.SEARCH) == [high, mid, low]

    def test_browse_sorts_by_publish_date(self, item_factory) -> None:
        old = item_factory("A", publish_date=100, seeders=99)
        new = item_factory("B", publish_date=300, seeders=1)
        assert rank([old, new], CatalogMode.BROWSE) == [new, old]

    def test_sort_is_stable(self, item_factory) -> None:
        a = item_factory("A", seeders=5)
        b = item_factory("B", seeders=5)
        assert rank([a, b]) == [a, b]
        assert rank([b, a]) == [b, a]

    def test_default_limits(self, item_factory) -> None:
        items = [item_factory(f"T{i}", seeders=i) for i in range(150)]
        assert len(rank(items, CatalogMode.SEARCH)) == 30
        assert len(rank(items, CatalogMode.BROWSE)) == 100

    def test_explicit_limit(self, item_factory) -> None:
        items = [item_factory(f"T{i}") for i in range(5)]
        assert len(rank(items, CatalogMode.SEARCH, limit=2)) == 2
        assert rank(items, CatalogMode.SEARCH, limit=-1) == []


class TestSelectCatalog:
    def test_filter_dedup_rank(self, item_factory) -> None:
        dup_low = item_factory("Movie.A.720p", imdb_id="tt1111111", seeders=1)
        dup_high = item_factory("Movie.A.1080p", imdb_id="tt1111111", seeders=90)
        other = item_factory("Movie.B.1080p", seeders=20)
        series = item_factory("Show.S01E01", seeders=1000)

        out = select_catalog(
            [dup_low, series, dup_high, other], "movie", CatalogMode.SEARCH
        )
        assert out == [other, dup_low]
