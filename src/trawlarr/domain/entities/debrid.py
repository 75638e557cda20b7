"""Domain entities for debrid resolution."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DebridErrorKind(str, Enum):
    """Terminal resolution failures, each with its own fallback video."""

    NOT_READY = "not_ready"
    EXPIRED_API_KEY = "expired_api_key"
    NOT_PREMIUM = "not_premium"
    ACCESS_DENIED = "access_denied"
    TWO_FACTOR_AUTH = "two_factor_auth"


@dataclass(frozen=True)
class TorrentSource:
    """What gets submitted to a provider: a magnet URI or raw .torrent bytes."""

    magnet_uri: str | None = None
    torrent_file: bytes | None = None
    info_hash: str | None = None
    name: str = ""

    @property
    def is_magnet(self) -> bool:
        return self.magnet_uri is not None


@dataclass(frozen=True)
class DebridHandle:
    """Provider-side reference to a submitted torrent."""

    provider: str
    remote_id: str


@dataclass(frozen=True)
class FileHint:
    """Which file of a multi-file torrent the client wants."""

    name: str = ""
    season: int | None = None
    episode: int | None = None
