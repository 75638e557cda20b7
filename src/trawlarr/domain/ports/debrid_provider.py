"""Port for debrid providers (Real-Debrid, AllDebrid, ...)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from trawlarr.domain.entities.debrid import DebridHandle, FileHint, TorrentSource


@runtime_checkable
class DebridProviderPort(Protocol):
    """Submit a torrent, poll until cached, fetch a direct link.

    Every method raises ``DebridError``; provider-specific error codes
    are normalized into ``DebridErrorKind`` by the implementation.
    """

    @property
    def name(self) -> str:
        """Provider id used in user config (e.g. 'realdebrid')."""
        ...

    @property
    def short_name(self) -> str:
        """Short label shown in stream names (e.g. 'RD')."""
        ...

    async def submit_source(self, source: TorrentSource) -> DebridHandle: ...

    async def poll_readiness(self, handle: DebridHandle) -> bool:
        """True once the provider has the torrent fully cached."""
        ...

    async def get_direct_link(self, handle: DebridHandle, hint: FileHint) -> str: ...
