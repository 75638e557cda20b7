"""Shared test fixtures for the Trawlarr test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from trawlarr.domain.entities import (
    CanonicalTorrent,
    ClassifiedItem,
    RawResult,
    TorrentInfoRecord,
)
from trawlarr.infrastructure.indexer.classifier import classify

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


def make_torrent(title: str = "Iron.Man.2008.1080p.BluRay", **overrides) -> CanonicalTorrent:
    fields = {
        "guid": f"https://tracker.example/details/{title}",
        "link": f"https://jackett.example/dl/{title}.torrent",
        "size_bytes": 4_500_000_000,
        "seeders": 10,
        "peers": 12,
        "tracker_name": "ExampleTracker",
        "indexer": "example",
    }
    fields.update(overrides)
    return CanonicalTorrent(title=title, **fields)


def make_item(title: str = "Iron.Man.2008.1080p.BluRay", **overrides) -> ClassifiedItem:
    return classify(make_torrent(title, **overrides))


def json_raw(title: str, **overrides) -> RawResult:
    """A Jackett JSON ``Results`` entry."""
    fields = {
        "Title": title,
        "Guid": f"https://tracker.example/details/{title}",
        "Link": f"https://jackett.example/dl/{title}.torrent",
        "Size": 1_500_000_000,
        "Seeders": 5,
        "Peers": 7,
        "Tracker": "ExampleTracker",
        "TrackerId": "example",
        "PublishDate": "2024-03-01T10:00:00Z",
    }
    fields.update(overrides)
    return RawResult(shape="json", fields=fields)


@pytest.fixture()
def torrent_factory():
    return make_torrent


@pytest.fixture()
def item_factory():
    return make_item


@pytest.fixture()
def raw_factory():
    return json_raw


@pytest.fixture()
def torrent() -> CanonicalTorrent:
    return make_torrent()


@pytest.fixture()
def classified_item() -> ClassifiedItem:
    return make_item()


@pytest.fixture()
def torrent_record() -> TorrentInfoRecord:
    return TorrentInfoRecord(
        torrent_id="a" * 40,
        link="https://jackett.example/dl/1.torrent",
        magnet_uri="magnet:?xt=urn:btih:abcdef0123456789abcdef0123456789abcdef01",
        info_hash="abcdef0123456789abcdef0123456789abcdef01",
        name="Iron.Man.2008.1080p.BluRay",
        size_bytes=4_500_000_000,
    )


# ---------------------------------------------------------------------------
# Mock port fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock(return_value=True)
    cache.exists = AsyncMock(return_value=False)
    cache.clear = AsyncMock()
    cache.expire = AsyncMock(return_value=0)
    cache.aclose = AsyncMock()
    return cache


@pytest.fixture()
def mock_indexer_client() -> AsyncMock:
    """Mock IndexerClientPort."""
    client = AsyncMock()
    client.search = AsyncMock(return_value=[])
    return client


@pytest.fixture()
def mock_provider() -> AsyncMock:
    """Mock DebridProviderPort, ready on the first poll."""
    provider = AsyncMock()
    provider.name = "realdebrid"
    provider.short_name = "RD"
    provider.submit_source = AsyncMock()
    provider.poll_readiness = AsyncMock(return_value=True)
    provider.get_direct_link = AsyncMock(return_value="https://cdn.example/file.mkv")
    return provider
