"""Real-Debrid provider (REST API 1.0).

Flow: ``/user`` premium check, ``/torrents/addMagnet`` or
``/torrents/addTorrent``, ``/torrents/selectFiles`` once the file list is
known, ``/torrents/info`` until ``status == downloaded``, then
``/unrestrict/link`` on the link that belongs to the chosen file.

Errors come back as ``{"error": "...", "error_code": N}``.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from trawlarr.domain.entities.debrid import (
    DebridErrorKind,
    DebridHandle,
    FileHint,
    TorrentSource,
)
from trawlarr.domain.entities.errors import DebridError
from trawlarr.infrastructure.debrid.file_selection import DebridFile, select_file

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.real-debrid.com/rest/1.0"

_ERROR_CODES: dict[int, DebridErrorKind] = {
    8: DebridErrorKind.EXPIRED_API_KEY,  # bad_token
    9: DebridErrorKind.ACCESS_DENIED,  # permission_denied
    10: DebridErrorKind.TWO_FACTOR_AUTH,
    11: DebridErrorKind.TWO_FACTOR_AUTH,
    20: DebridErrorKind.NOT_PREMIUM,
    22: DebridErrorKind.ACCESS_DENIED,  # ip not allowed
    23: DebridErrorKind.ACCESS_DENIED,  # traffic exhausted
    35: DebridErrorKind.ACCESS_DENIED,  # infringing file
}

_READY_STATUSES = frozenset({"downloaded"})
_FAILED_STATUSES = frozenset({"error", "magnet_error", "virus", "dead"})


def _error_kind(status_code: int, payload: Any) -> DebridErrorKind | None:
    code = payload.get("error_code") if isinstance(payload, dict) else None
    if isinstance(code, int) and code in _ERROR_CODES:
        return _ERROR_CODES[code]
    if status_code == 401:
        return DebridErrorKind.EXPIRED_API_KEY
    if status_code == 403:
        return DebridErrorKind.ACCESS_DENIED
    return None


class RealDebridProvider:
    """Implements ``DebridProviderPort`` against api.real-debrid.com."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        *,
        base_url: str = _BASE_URL,
        timeout: float = 15.0,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "realdebrid"

    @property
    def short_name(self) -> str:
        return "RD"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        data: dict[str, str] | None = None,
        content: bytes | None = None,
    ) -> Any:
        try:
            resp = await self._http.request(
                method,
                f"{self._base_url}{path}",
                data=data,
                content=content,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            log.warning("realdebrid_request_failed", path=path, error=str(exc))
            raise DebridError(None, f"Real-Debrid request failed: {path}") from exc

        if resp.status_code == 204 or not resp.content:
            payload: Any = None
        else:
            try:
                payload = resp.json()
            except ValueError:
                payload = None

        if resp.status_code >= 400:
            kind = _error_kind(resp.status_code, payload)
            log.warning(
                "realdebrid_api_error",
                path=path,
                status=resp.status_code,
                error_code=payload.get("error_code") if isinstance(payload, dict) else None,
                kind=kind.value if kind else None,
            )
            raise DebridError(kind, f"Real-Debrid HTTP {resp.status_code} on {path}")
        return payload

    async def _ensure_premium(self) -> None:
        user = await self._request("GET", "/user")
        if not isinstance(user, dict) or user.get("type") != "premium":
            raise DebridError(DebridErrorKind.NOT_PREMIUM)

    async def submit_source(self, source: TorrentSource) -> DebridHandle:
        await self._ensure_premium()
        if source.magnet_uri:
            added = await self._request(
                "POST", "/torrents/addMagnet", data={"magnet": source.magnet_uri}
            )
        elif source.torrent_file:
            added = await self._request(
                "PUT", "/torrents/addTorrent", content=source.torrent_file
            )
        else:
            raise DebridError(None, "Empty torrent source")

        if not isinstance(added, dict) or not added.get("id"):
            raise DebridError(None, "Real-Debrid did not return a torrent id")
        log.info("realdebrid_torrent_added", remote_id=added["id"], name=source.name)
        return DebridHandle(provider=self.name, remote_id=str(added["id"]))

    async def _info(self, handle: DebridHandle) -> dict[str, Any]:
        info = await self._request("GET", f"/torrents/info/{handle.remote_id}")
        if not isinstance(info, dict):
            raise DebridError(None, "Malformed torrent info")
        return info

    async def poll_readiness(self, handle: DebridHandle) -> bool:
        info = await self._info(handle)
        status = info.get("status", "")
        if status == "waiting_files_selection":
            await self._select_files(handle, info)
            return False
        if status in _FAILED_STATUSES:
            log.warning("realdebrid_torrent_failed", remote_id=handle.remote_id, status=status)
            raise DebridError(None, f"Real-Debrid torrent status: {status}")
        return status in _READY_STATUSES

    async def _select_files(self, handle: DebridHandle, info: dict[str, Any]) -> None:
        files = info.get("files") or []
        video_ids = [
            str(f["id"])
            for f in files
            if DebridFile(path=f.get("path", ""), size_bytes=f.get("bytes", 0)).is_video
        ]
        await self._request(
            "POST",
            f"/torrents/selectFiles/{handle.remote_id}",
            data={"files": ",".join(video_ids) if video_ids else "all"},
        )

    async def get_direct_link(self, handle: DebridHandle, hint: FileHint) -> str:
        info = await self._info(handle)
        selected = [f for f in info.get("files") or [] if f.get("selected")]
        links: list[str] = info.get("links") or []
        if not selected or not links:
            raise DebridError(DebridErrorKind.NOT_READY)

        files = [DebridFile(path=f.get("path", ""), size_bytes=f.get("bytes", 0)) for f in selected]
        index = select_file(files, hint)
        # links are ordered like the selected files
        link = links[index] if index is not None and index < len(links) else links[0]

        unrestricted = await self._request("POST", "/unrestrict/link", data={"link": link})
        url = unrestricted.get("download") if isinstance(unrestricted, dict) else None
        if not url:
            raise DebridError(None, "Real-Debrid unrestrict returned no URL")
        return url
