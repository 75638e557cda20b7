"""Port for a single-indexer search call."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from trawlarr.domain.entities.torrent import RawResult


@runtime_checkable
class IndexerClientPort(Protocol):
    """Issues one search against one indexer and returns its raw records.

    Raises ``IndexerError`` on transport, HTTP or decoding failures.
    """

    async def search(self, indexer: str, query: str) -> list[RawResult]: ...
