"""AllDebrid provider (API v4).

Every response is an envelope ``{"status": "success"|"error", "data": ...,
"error": {"code": "...", "message": "..."}}``; the HTTP status is 200 for
most failures, so the envelope decides.
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

_BASE_URL = "https://api.alldebrid.com/v4"
_AGENT = "trawlarr"

_ERROR_CODES: dict[str, DebridErrorKind] = {
    "AUTH_MISSING_APIKEY": DebridErrorKind.EXPIRED_API_KEY,
    "AUTH_BAD_APIKEY": DebridErrorKind.EXPIRED_API_KEY,
    "AUTH_BLOCKED": DebridErrorKind.TWO_FACTOR_AUTH,
    "AUTH_USER_BANNED": DebridErrorKind.ACCESS_DENIED,
    "NO_SERVER": DebridErrorKind.ACCESS_DENIED,
    "MUST_BE_PREMIUM": DebridErrorKind.NOT_PREMIUM,
    "FREE_TRIAL_LIMIT_REACHED": DebridErrorKind.NOT_PREMIUM,
}

_STATUS_READY = 4
# 5+ are terminal failures (upload fail, not downloaded in 20 min, too big, ...)
_STATUS_FAILED_MIN = 5


def _flatten_files(nodes: list[dict[str, Any]], prefix: str = "") -> list[dict[str, Any]]:
    """Walk AllDebrid's nested ``files`` tree (``n`` name, ``e`` entries, ``l`` link)."""
    out: list[dict[str, Any]] = []
    for node in nodes:
        name = node.get("n", "")
        path = f"{prefix}/{name}" if prefix else name
        if "e" in node:
            out.extend(_flatten_files(node.get("e") or [], path))
        elif node.get("l"):
            out.append({"path": path, "size": node.get("s", 0), "link": node["l"]})
    return out


class AllDebridProvider:
    """Implements ``DebridProviderPort`` against api.alldebrid.com."""

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
        return "alldebrid"

    @property
    def short_name(self) -> str:
        return "AD"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        query = {"agent": _AGENT, "apikey": self._api_key, **(params or {})}
        try:
            resp = await self._http.request(
                method,
                f"{self._base_url}{path}",
                params=query,
                data=data,
                files=files,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            log.warning("alldebrid_request_failed", path=path, error=str(exc))
            raise DebridError(None, f"AllDebrid request failed: {path}") from exc

        try:
            payload = resp.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            log.warning("alldebrid_bad_response", path=path, status=resp.status_code)
            raise DebridError(None, f"AllDebrid HTTP {resp.status_code} on {path}")

        if payload.get("status") != "success":
            code = (payload.get("error") or {}).get("code", "")
            kind = _ERROR_CODES.get(code)
            log.warning(
                "alldebrid_api_error",
                path=path,
                code=code,
                kind=kind.value if kind else None,
            )
            raise DebridError(kind, f"AllDebrid error {code or 'unknown'} on {path}")
        return payload.get("data") or {}

    async def _ensure_premium(self) -> None:
        data = await self._request("GET", "/user")
        user = data.get("user") or {}
        if not user.get("isPremium"):
            raise DebridError(DebridErrorKind.NOT_PREMIUM)

    async def submit_source(self, source: TorrentSource) -> DebridHandle:
        await self._ensure_premium()
        if source.magnet_uri:
            data = await self._request(
                "POST", "/magnet/upload", data={"magnets[]": source.magnet_uri}
            )
            uploaded = data.get("magnets") or []
        elif source.torrent_file:
            data = await self._request(
                "POST",
                "/magnet/upload/file",
                files={"files[0]": (f"{source.name or 'upload'}.torrent", source.torrent_file)},
            )
            uploaded = data.get("files") or []
        else:
            raise DebridError(None, "Empty torrent source")

        first = uploaded[0] if uploaded else {}
        if "error" in first:
            code = first["error"].get("code", "")
            raise DebridError(_ERROR_CODES.get(code), f"AllDebrid upload error {code}")
        if not first.get("id"):
            raise DebridError(None, "AllDebrid did not return a magnet id")
        log.info("alldebrid_magnet_added", remote_id=first["id"], name=source.name)
        return DebridHandle(provider=self.name, remote_id=str(first["id"]))

    async def _status(self, handle: DebridHandle) -> dict[str, Any]:
        data = await self._request("GET", "/magnet/status", params={"id": handle.remote_id})
        magnets = data.get("magnets")
        if isinstance(magnets, list):
            magnets = magnets[0] if magnets else None
        if not isinstance(magnets, dict):
            raise DebridError(None, "Malformed magnet status")
        return magnets

    async def poll_readiness(self, handle: DebridHandle) -> bool:
        status = await self._status(handle)
        code = int(status.get("statusCode", 0))
        if code >= _STATUS_FAILED_MIN:
            log.warning(
                "alldebrid_magnet_failed",
                remote_id=handle.remote_id,
                status=status.get("status"),
            )
            raise DebridError(None, f"AllDebrid magnet status: {status.get('status')}")
        return code == _STATUS_READY

    async def get_direct_link(self, handle: DebridHandle, hint: FileHint) -> str:
        status = await self._status(handle)
        if int(status.get("statusCode", 0)) != _STATUS_READY:
            raise DebridError(DebridErrorKind.NOT_READY)

        entries = _flatten_files(status.get("files") or [])
        if not entries:
            # older responses carry a flat links list
            entries = [
                {"path": link.get("filename", ""), "size": link.get("size", 0), "link": link.get("link")}
                for link in status.get("links") or []
                if link.get("link")
            ]
        files = [DebridFile(path=e["path"], size_bytes=int(e.get("size") or 0)) for e in entries]
        index = select_file(files, hint)
        if index is None:
            raise DebridError(DebridErrorKind.NOT_READY)

        data = await self._request("GET", "/link/unlock", params={"link": entries[index]["link"]})
        url = data.get("link")
        if not url:
            raise DebridError(None, "AllDebrid unlock returned no URL")
        return url
