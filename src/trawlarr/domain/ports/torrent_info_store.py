"""Port for the durable torrent info store."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol, runtime_checkable

from trawlarr.domain.entities.torrent import TorrentInfoRecord


@runtime_checkable
class TorrentInfoStorePort(Protocol):
    """Durable mapping of torrent id -> resolution inputs."""

    async def put(self, record: TorrentInfoRecord) -> TorrentInfoRecord:
        """Upsert; returns the stored record (original ``created_at`` kept)."""
        ...

    async def get(self, torrent_id: str) -> TorrentInfoRecord:
        """Return the record or raise ``TorrentInfoNotFound``."""
        ...

    def pinned(self, torrent_id: str) -> AbstractAsyncContextManager[None]:
        """Protect ``torrent_id`` from the sweep while the block runs."""
        ...

    async def sweep(self) -> int:
        """Remove records older than the retention window; returns count."""
        ...

    async def aclose(self) -> None:
        """Release the backing storage."""
        ...
