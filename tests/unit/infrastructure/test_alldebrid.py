"""Tests for AllDebridProvider."""

from __future__ import annotations

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
from trawlarr.infrastructure.debrid.alldebrid import AllDebridProvider, _flatten_files

_AD = "https://api.alldebrid.com/v4"
_HANDLE = DebridHandle("alldebrid", "42")
_MAGNET = TorrentSource(magnet_uri="magnet:?xt=urn:btih:abc", name="Movie")


def _ok(data: dict) -> dict:
    return {"status": "success", "data": data}


def _err(code: str) -> dict:
    return {"status": "error", "error": {"code": code, "message": "nope"}}


def _premium() -> None:
    respx.get(f"{_AD}/user").respond(200, json=_ok({"user": {"isPremium": True}}))


class TestFlattenFiles:
    def test_nested_tree(self) -> None:
        tree = [
            {
                "n": "Show.S01",
                "e": [
                    {"n": "Show.S01E01.mkv", "s": 10, "l": "https://ad/1"},
                    {"n": "Subs", "e": [{"n": "en.srt", "s": 1, "l": "https://ad/s"}]},
                ],
            }
        ]
        assert _flatten_files(tree) == [
            {"path": "Show.S01/Show.S01E01.mkv", "size": 10, "link": "https://ad/1"},
            {"path": "Show.S01/Subs/en.srt", "size": 1, "link": "https://ad/s"},
        ]

    def test_entries_without_link_dropped(self) -> None:
        assert _flatten_files([{"n": "x.mkv", "s": 1}]) == []


class TestSubmit:
    @respx.mock
    async def test_magnet(self) -> None:
        _premium()
        upload = respx.post(f"{_AD}/magnet/upload").respond(
            200, json=_ok({"magnets": [{"id": 42, "ready": False}]})
        )
        async with httpx.AsyncClient() as http:
            handle = await AllDebridProvider(http, "key").submit_source(_MAGNET)

        assert handle == _HANDLE
        params = upload.calls.last.request.url.params
        assert params["agent"] == "trawlarr"
        assert params["apikey"] == "key"

    @respx.mock
    async def test_torrent_file(self) -> None:
        _premium()
        respx.post(f"{_AD}/magnet/upload/file").respond(
            200, json=_ok({"files": [{"id": 7}]})
        )
        async with httpx.AsyncClient() as http:
            handle = await AllDebridProvider(http, "key").submit_source(
                TorrentSource(torrent_file=b"d8:announce", name="Movie")
            )
        assert handle.remote_id == "7"

    @respx.mock
    async def test_per_item_error(self) -> None:
        _premium()
        respx.post(f"{_AD}/magnet/upload").respond(
            200, json=_ok({"magnets": [{"error": {"code": "MUST_BE_PREMIUM"}}]})
        )
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError) as exc_info:
                await AllDebridProvider(http, "key").submit_source(_MAGNET)
        assert exc_info.value.kind is DebridErrorKind.NOT_PREMIUM

    @respx.mock
    async def test_not_premium(self) -> None:
        respx.get(f"{_AD}/user").respond(200, json=_ok({"user": {"isPremium": False}}))
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError) as exc_info:
                await AllDebridProvider(http, "key").submit_source(_MAGNET)
        assert exc_info.value.kind is DebridErrorKind.NOT_PREMIUM


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("code", "kind"),
        [
            ("AUTH_BAD_APIKEY", DebridErrorKind.EXPIRED_API_KEY),
            ("AUTH_MISSING_APIKEY", DebridErrorKind.EXPIRED_API_KEY),
            ("AUTH_BLOCKED", DebridErrorKind.TWO_FACTOR_AUTH),
            ("AUTH_USER_BANNED", DebridErrorKind.ACCESS_DENIED),
            ("NO_SERVER", DebridErrorKind.ACCESS_DENIED),
            ("FREE_TRIAL_LIMIT_REACHED", DebridErrorKind.NOT_PREMIUM),
            ("SOMETHING_ELSE", None),
        ],
    )
    @respx.mock
    async def test_codes(self, code: str, kind) -> None:
        respx.get(f"{_AD}/user").respond(200, json=_err(code))
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError) as exc_info:
                await AllDebridProvider(http, "key").submit_source(_MAGNET)
        assert exc_info.value.kind is kind

    @respx.mock
    async def test_non_json_body(self) -> None:
        respx.get(f"{_AD}/user").respond(502, text="Bad Gateway")
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError, match="HTTP 502") as exc_info:
                await AllDebridProvider(http, "key").submit_source(_MAGNET)
        assert exc_info.value.kind is None


class TestPollReadiness:
    @pytest.mark.parametrize(("code", "ready"), [(0, False), (1, False), (4, True)])
    @respx.mock
    async def test_status_codes(self, code: int, ready: bool) -> None:
        respx.get(f"{_AD}/magnet/status").respond(
            200, json=_ok({"magnets": {"id": 42, "statusCode": code}})
        )
        async with httpx.AsyncClient() as http:
            assert await AllDebridProvider(http, "key").poll_readiness(_HANDLE) is ready

    @respx.mock
    async def test_list_shape(self) -> None:
        respx.get(f"{_AD}/magnet/status").respond(
            200, json=_ok({"magnets": [{"id": 42, "statusCode": 4}]})
        )
        async with httpx.AsyncClient() as http:
            assert await AllDebridProvider(http, "key").poll_readiness(_HANDLE) is True

    @respx.mock
    async def test_failed_magnet_raises(self) -> None:
        respx.get(f"{_AD}/magnet/status").respond(
            200, json=_ok({"magnets": {"statusCode": 7, "status": "Upload fail"}})
        )
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError, match="Upload fail"):
                await AllDebridProvider(http, "key").poll_readiness(_HANDLE)


class TestDirectLink:
    @respx.mock
    async def test_unlocks_selected_file(self) -> None:
        respx.get(f"{_AD}/magnet/status").respond(
            200,
            json=_ok(
                {
                    "magnets": {
                        "statusCode": 4,
                        "files": [
                            {"n": "Movie.2019.1080p.mkv", "s": 9000, "l": "https://ad/big"},
                            {"n": "sample.mkv", "s": 10, "l": "https://ad/small"},
                        ],
                    }
                }
            ),
        )
        unlock = respx.get(f"{_AD}/link/unlock").respond(
            200, json=_ok({"link": "https://cdn.ad/Movie.mkv"})
        )
        async with httpx.AsyncClient() as http:
            url = await AllDebridProvider(http, "key").get_direct_link(_HANDLE, FileHint())

        assert url == "https://cdn.ad/Movie.mkv"
        assert unlock.calls.last.request.url.params["link"] == "https://ad/big"

    @respx.mock
    async def test_flat_links_fallback(self) -> None:
        respx.get(f"{_AD}/magnet/status").respond(
            200,
            json=_ok(
                {
                    "magnets": {
                        "statusCode": 4,
                        "links": [
                            {"filename": "Movie.mkv", "size": 5, "link": "https://ad/only"}
                        ],
                    }
                }
            ),
        )
        unlock = respx.get(f"{_AD}/link/unlock").respond(
            200, json=_ok({"link": "https://cdn.ad/x"})
        )
        async with httpx.AsyncClient() as http:
            await AllDebridProvider(http, "key").get_direct_link(_HANDLE, FileHint())
        assert unlock.calls.last.request.url.params["link"] == "https://ad/only"

    @respx.mock
    async def test_not_ready(self) -> None:
        respx.get(f"{_AD}/magnet/status").respond(
            200, json=_ok({"magnets": {"statusCode": 1}})
        )
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError) as exc_info:
                await AllDebridProvider(http, "key").get_direct_link(_HANDLE, FileHint())
        assert exc_info.value.kind is DebridErrorKind.NOT_READY
