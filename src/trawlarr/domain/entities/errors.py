"""Domain exception hierarchy."""

from __future__ import annotations

from trawlarr.domain.entities.debrid import DebridErrorKind


class TrawlarrError(Exception):
    """Base error for trawlarr domain/usecases."""


class IndexerError(TrawlarrError):
    """An indexer call failed (transport, HTTP status or unparseable body)."""

    def __init__(self, indexer: str, message: str) -> None:
        super().__init__(f"{indexer}: {message}")
        self.indexer = indexer


class TorrentInfoNotFound(TrawlarrError):
    """No stored torrent info for the requested id; the client must search again."""

    def __init__(self, torrent_id: str) -> None:
        super().__init__(f"Torrent info not found: {torrent_id}")
        self.torrent_id = torrent_id


class DebridError(TrawlarrError):
    """A debrid provider refused or could not complete the resolution.

    ``kind`` is one of the known terminal kinds, or ``None`` for any
    other provider failure.
    """

    def __init__(
        self, kind: DebridErrorKind | None = None, message: str = ""
    ) -> None:
        super().__init__(message or (kind.value if kind else "debrid_error"))
        self.kind = kind


class UnknownDebridProvider(TrawlarrError):
    """User config names a debrid provider that is not registered."""
