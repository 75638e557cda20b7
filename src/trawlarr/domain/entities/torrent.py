"""Domain entities for indexer search results and torrent selection.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

import hashlib
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal

ContentType = Literal["movie", "series"]
RawShape = Literal["torznab", "json"]


class CatalogMode(str, Enum):
    """Ordering policy for an aggregated catalog."""

    SEARCH = "search"  # ad-hoc search: seeders desc
    BROWSE = "browse"  # catalog listing: publish date desc


@dataclass(frozen=True)
class RawResult:
    """Indexer-specific record, tagged with the wire shape it came from."""

    shape: RawShape
    fields: dict[str, Any]


@dataclass(frozen=True)
class CanonicalTorrent:
    """One search result, normalized across Torznab XML and Jackett JSON."""

    title: str
    guid: str | None = None
    link: str | None = None
    info_hash: str | None = None
    magnet_uri: str | None = None
    size_bytes: int = 0
    seeders: int = 0
    peers: int = 0
    tracker_name: str = "Unknown"
    imdb_id: str | None = None
    year: int | None = None
    publish_date: int = 0  # epoch seconds
    quality: int = 0  # 2160/1080/720/480/360, 0 = unknown
    indexer: str = ""

    @property
    def identity(self) -> str:
        """First available of guid, link, title."""
        return self.guid or self.link or self.title

    @property
    def torrent_id(self) -> str:
        """Resolution key (SHA1 of the indexer identity)."""
        return hashlib.sha1(self.identity.encode("utf-8")).hexdigest()

    @property
    def leechers(self) -> int:
        return max(self.peers - self.seeders, 0)


@dataclass(frozen=True)
class ClassifiedItem:
    """A CanonicalTorrent tagged with content type and stable id."""

    torrent: CanonicalTorrent
    content_type: ContentType
    is_single_episode: bool
    stable_id: str
    display_title: str

    @property
    def seeders(self) -> int:
        return self.torrent.seeders

    @property
    def publish_date(self) -> int:
        return self.torrent.publish_date


@dataclass(frozen=True)
class TorrentInfoRecord:
    """Everything the debrid resolver needs to turn a selection into a URL."""

    torrent_id: str
    link: str | None = None
    magnet_uri: str | None = None
    info_hash: str | None = None
    name: str = ""
    size_bytes: int = 0
    created_at: float = 0.0  # epoch seconds, set by the store


@dataclass(frozen=True)
class UserConfig:
    """Per-user add-on settings carried in the URL path."""

    debrid_id: str = ""
    debrid_api_key: str = ""
    indexers: list[str] = field(default_factory=lambda: ["all"])
    qualities: list[int] = field(default_factory=lambda: [0, 720, 1080, 2160])


def classified_item_to_dict(item: ClassifiedItem) -> dict[str, Any]:
    """JSON-compatible form used by the result cache and selection store."""
    return {
        "torrent": asdict(item.torrent),
        "content_type": item.content_type,
        "is_single_episode": item.is_single_episode,
        "stable_id": item.stable_id,
        "display_title": item.display_title,
    }


def classified_item_from_dict(data: dict[str, Any]) -> ClassifiedItem:
    """Inverse of ``classified_item_to_dict``.

    Raises:
        KeyError, TypeError: Malformed payload.
    """
    return ClassifiedItem(
        torrent=CanonicalTorrent(**data["torrent"]),
        content_type=data["content_type"],
        is_single_episode=bool(data["is_single_episode"]),
        stable_id=data["stable_id"],
        display_title=data["display_title"],
    )
