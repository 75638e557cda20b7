"""Resolve a catalog selection into a direct debrid download URL."""

from __future__ import annotations

import asyncio

import httpx
import structlog

from trawlarr.domain.entities import (
    ClassifiedItem,
    ContentType,
    DebridError,
    DebridErrorKind,
    FileHint,
    TorrentInfoRecord,
    UserConfig,
)
from trawlarr.domain.ports.torrent_info_store import TorrentInfoStorePort
from trawlarr.infrastructure.debrid.registry import DebridProviderRegistry
from trawlarr.infrastructure.debrid.torrent_source import build_torrent_source

log = structlog.get_logger(__name__)


def parse_stremio_id(content_type: ContentType, stremio_id: str) -> FileHint:
    """Season/episode hint from ``<id>:<season>:<episode>`` series ids."""
    if content_type != "series":
        return FileHint()
    parts = stremio_id.split(":")
    if len(parts) < 3:
        return FileHint()
    try:
        return FileHint(season=int(parts[-2]), episode=int(parts[-1]))
    except ValueError:
        return FileHint()


def record_from_item(item: ClassifiedItem) -> TorrentInfoRecord:
    t = item.torrent
    return TorrentInfoRecord(
        torrent_id=t.torrent_id,
        link=t.link,
        magnet_uri=t.magnet_uri,
        info_hash=t.info_hash,
        name=t.title,
        size_bytes=t.size_bytes,
    )


class ResolveDownloadUseCase:
    """Look up, submit, poll, link.

    The torrent id stays pinned in the store for the whole resolution so
    the maintenance sweep cannot remove it mid-flight.
    """

    def __init__(
        self,
        store: TorrentInfoStorePort,
        providers: DebridProviderRegistry,
        http_client: httpx.AsyncClient,
        *,
        poll_interval: float = 2.0,
        max_poll_attempts: int = 5,
    ) -> None:
        self._store = store
        self._providers = providers
        self._http_client = http_client
        self._poll_interval = poll_interval
        self._max_poll_attempts = max_poll_attempts

    async def remember(self, item: ClassifiedItem) -> TorrentInfoRecord:
        """Persist the resolution inputs of a catalog item."""
        return await self._store.put(record_from_item(item))

    async def resolve_download(
        self,
        user_config: UserConfig,
        content_type: ContentType,
        stremio_id: str,
        torrent_id: str,
        *,
        file_name: str = "",
    ) -> str:
        """Direct download URL for ``torrent_id``.

        Raises:
            TorrentInfoNotFound: No stored record for ``torrent_id``.
            UnknownDebridProvider: ``user_config`` names no known provider.
            DebridError: Provider failure; ``kind`` is NOT_READY when the
                poll budget runs out.
        """
        provider = self._providers.create(user_config)
        hint = parse_stremio_id(content_type, stremio_id)
        if file_name:
            hint = FileHint(name=file_name, season=hint.season, episode=hint.episode)

        async with self._store.pinned(torrent_id):
            record = await self._store.get(torrent_id)
            source = await build_torrent_source(self._http_client, record)
            handle = await provider.submit_source(source)

            for attempt in range(1, self._max_poll_attempts + 1):
                if await provider.poll_readiness(handle):
                    break
                log.debug(
                    "debrid_not_ready",
                    provider=provider.name,
                    torrent_id=torrent_id,
                    attempt=attempt,
                )
                if attempt < self._max_poll_attempts:
                    await asyncio.sleep(self._poll_interval)
            else:
                log.info(
                    "debrid_poll_budget_exhausted",
                    provider=provider.name,
                    torrent_id=torrent_id,
                    attempts=self._max_poll_attempts,
                )
                raise DebridError(DebridErrorKind.NOT_READY)

            url = await provider.get_direct_link(handle, hint)

        log.info(
            "debrid_resolved",
            provider=provider.name,
            torrent_id=torrent_id,
            stremio_id=stremio_id,
        )
        return url
