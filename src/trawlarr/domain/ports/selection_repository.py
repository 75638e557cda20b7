"""Port for remembering catalog items between catalog and stream calls."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from trawlarr.domain.entities.torrent import ClassifiedItem


@runtime_checkable
class SelectionRepository(Protocol):
    """Async interface for storing catalog items by stable id."""

    async def save(self, item: ClassifiedItem) -> None: ...

    async def get(self, stable_id: str) -> ClassifiedItem | None: ...
