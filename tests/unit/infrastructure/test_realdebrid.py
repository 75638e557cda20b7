"""Tests for RealDebridProvider."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from trawlarr.domain.entities import (
    DebridError,
    DebridErrorKind,
    DebridHandle,
    FileHint,
    TorrentSource,
)
from trawlarr.infrastructure.debrid.realdebrid import RealDebridProvider

_RD = "https://api.real-debrid.com/rest/1.0"
_HANDLE = DebridHandle("realdebrid", "T1")
_MAGNET = TorrentSource(magnet_uri="magnet:?xt=urn:btih:abc", name="Movie")


def _files(*selected: bool) -> list[dict]:
    return [
        {
            "id": i + 1,
            "path": f"/Show.S01E0{i + 1}.mkv",
            "bytes": 1000 + i,
            "selected": int(s),
        }
        for i, s in enumerate(selected)
    ]


class TestMetadata:
    def test_names(self) -> None:
        p = RealDebridProvider(httpx.AsyncClient(), "key")
        assert p.name == "realdebrid"
        assert p.short_name == "RD"


class TestSubmit:
    @respx.mock
    async def test_magnet(self) -> None:
        respx.get(f"{_RD}/user").respond(200, json={"type": "premium"})
        add = respx.post(f"{_RD}/torrents/addMagnet").respond(
            201, json={"id": "T1", "uri": "..."}
        )
        async with httpx.AsyncClient() as http:
            handle = await RealDebridProvider(http, "key").submit_source(_MAGNET)

        assert handle == _HANDLE
        request = add.calls.last.request
        assert request.headers["Authorization"] == "Bearer key"
        assert b"magnet=magnet" in request.content

    @respx.mock
    async def test_torrent_file(self) -> None:
        respx.get(f"{_RD}/user").respond(200, json={"type": "premium"})
        add = respx.put(f"{_RD}/torrents/addTorrent").respond(201, json={"id": "T2"})
        async with httpx.AsyncClient() as http:
            handle = await RealDebridProvider(http, "key").submit_source(
                TorrentSource(torrent_file=b"d8:announce")
            )
        assert handle.remote_id == "T2"
        assert add.calls.last.request.content == b"d8:announce"

    @respx.mock
    async def test_free_account(self) -> None:
        respx.get(f"{_RD}/user").respond(200, json={"type": "free"})
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError) as exc_info:
                await RealDebridProvider(http, "key").submit_source(_MAGNET)
        assert exc_info.value.kind is DebridErrorKind.NOT_PREMIUM

    @respx.mock
    async def test_empty_source(self) -> None:
        respx.get(f"{_RD}/user").respond(200, json={"type": "premium"})
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError, match="Empty torrent source"):
                await RealDebridProvider(http, "key").submit_source(TorrentSource())


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("status", "body", "kind"),
        [
            (401, {"error": "bad_token", "error_code": 8}, DebridErrorKind.EXPIRED_API_KEY),
            (403, {"error": "permission_denied", "error_code": 9}, DebridErrorKind.ACCESS_DENIED),
            (403, {"error": "two_factor", "error_code": 11}, DebridErrorKind.TWO_FACTOR_AUTH),
            (403, {"error": "premium_only", "error_code": 20}, DebridErrorKind.NOT_PREMIUM),
            (503, {"error": "ip_not_allowed", "error_code": 22}, DebridErrorKind.ACCESS_DENIED),
            (401, None, DebridErrorKind.EXPIRED_API_KEY),
            (403, None, DebridErrorKind.ACCESS_DENIED),
            (500, {"error": "unknown", "error_code": -1}, None),
        ],
    )
    @respx.mock
    async def test_kinds(self, status: int, body: dict | None, kind) -> None:
        content = json.dumps(body).encode() if body is not None else b""
        respx.get(f"{_RD}/user").respond(status, content=content)
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError) as exc_info:
                await RealDebridProvider(http, "key").submit_source(_MAGNET)
        assert exc_info.value.kind is kind

    @respx.mock
    async def test_transport_error_is_generic(self) -> None:
        respx.get(f"{_RD}/user").mock(side_effect=httpx.ReadTimeout("slow"))
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError) as exc_info:
                await RealDebridProvider(http, "key").submit_source(_MAGNET)
        assert exc_info.value.kind is None


class TestPollReadiness:
    @respx.mock
    async def test_selects_video_files(self) -> None:
        info = _files(False, False)
        info.append({"id": 9, "path": "/readme.txt", "bytes": 5, "selected": 0})
        respx.get(f"{_RD}/torrents/info/T1").respond(
            200, json={"status": "waiting_files_selection", "files": info}
        )
        select = respx.post(f"{_RD}/torrents/selectFiles/T1").respond(204)
        async with httpx.AsyncClient() as http:
            ready = await RealDebridProvider(http, "key").poll_readiness(_HANDLE)

        assert ready is False
        assert select.calls.last.request.content == b"files=1%2C2"

    @respx.mock
    async def test_downloading_is_not_ready(self) -> None:
        respx.get(f"{_RD}/torrents/info/T1").respond(200, json={"status": "downloading"})
        async with httpx.AsyncClient() as http:
            assert await RealDebridProvider(http, "key").poll_readiness(_HANDLE) is False

    @respx.mock
    async def test_downloaded_is_ready(self) -> None:
        respx.get(f"{_RD}/torrents/info/T1").respond(200, json={"status": "downloaded"})
        async with httpx.AsyncClient() as http:
            assert await RealDebridProvider(http, "key").poll_readiness(_HANDLE) is True

    @respx.mock
    async def test_dead_torrent_raises(self) -> None:
        respx.get(f"{_RD}/torrents/info/T1").respond(200, json={"status": "dead"})
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError, match="dead"):
                await RealDebridProvider(http, "key").poll_readiness(_HANDLE)


class TestDirectLink:
    @respx.mock
    async def test_unrestricts_episode_link(self) -> None:
        respx.get(f"{_RD}/torrents/info/T1").respond(
            200,
            json={
                "status": "downloaded",
                "files": _files(True, True, True),
                "links": ["https://rd/l1", "https://rd/l2", "https://rd/l3"],
            },
        )
        unrestrict = respx.post(f"{_RD}/unrestrict/link").respond(
            200, json={"download": "https://cdn.rd/Show.S01E02.mkv"}
        )
        async with httpx.AsyncClient() as http:
            url = await RealDebridProvider(http, "key").get_direct_link(
                _HANDLE, FileHint(season=1, episode=2)
            )

        assert url == "https://cdn.rd/Show.S01E02.mkv"
        assert unrestrict.calls.last.request.content == b"link=https%3A%2F%2Frd%2Fl2"

    @respx.mock
    async def test_no_links_is_not_ready(self) -> None:
        respx.get(f"{_RD}/torrents/info/T1").respond(
            200, json={"status": "downloaded", "files": _files(True), "links": []}
        )
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError) as exc_info:
                await RealDebridProvider(http, "key").get_direct_link(_HANDLE, FileHint())
        assert exc_info.value.kind is DebridErrorKind.NOT_READY
