"""Turn a TorrentInfoRecord into something a debrid provider accepts."""

from __future__ import annotations

from urllib.parse import quote, urljoin

import httpx
import structlog

from trawlarr.domain.entities.debrid import TorrentSource
from trawlarr.domain.entities.errors import DebridError
from trawlarr.domain.entities.torrent import TorrentInfoRecord

log = structlog.get_logger(__name__)

_MAX_REDIRECTS = 5


def magnet_from_info_hash(info_hash: str, name: str = "") -> str:
    uri = f"magnet:?xt=urn:btih:{info_hash.lower()}"
    if name:
        uri += f"&dn={quote(name)}"
    return uri


async def build_torrent_source(
    http_client: httpx.AsyncClient, record: TorrentInfoRecord
) -> TorrentSource:
    """Magnet URI when one is known, else the .torrent behind the indexer link.

    Jackett download links either serve the .torrent file or redirect to a
    magnet URI, so redirects are followed by hand.

    Raises:
        DebridError: No usable source (generic kind).
    """
    if record.magnet_uri:
        return TorrentSource(
            magnet_uri=record.magnet_uri, info_hash=record.info_hash, name=record.name
        )
    if record.info_hash:
        return TorrentSource(
            magnet_uri=magnet_from_info_hash(record.info_hash, record.name),
            info_hash=record.info_hash,
            name=record.name,
        )
    if not record.link:
        raise DebridError(None, f"No torrent source for {record.torrent_id}")

    url = record.link
    for _ in range(_MAX_REDIRECTS + 1):
        if url.startswith("magnet:"):
            return TorrentSource(magnet_uri=url, name=record.name)
        try:
            resp = await http_client.get(url, follow_redirects=False)
        except httpx.HTTPError as exc:
            log.warning(
                "torrent_source_fetch_failed",
                torrent_id=record.torrent_id,
                error=str(exc),
            )
            raise DebridError(None, "Torrent download failed") from exc
        if resp.has_redirect_location:
            # Location may be a magnet URI, which httpx cannot follow itself.
            url = urljoin(url, resp.headers["location"])
            continue
        if resp.status_code != 200 or not resp.content:
            log.warning(
                "torrent_source_bad_response",
                torrent_id=record.torrent_id,
                status=resp.status_code,
            )
            raise DebridError(None, f"Torrent download returned HTTP {resp.status_code}")
        return TorrentSource(torrent_file=resp.content, name=record.name)

    raise DebridError(None, "Too many redirects while fetching torrent")
