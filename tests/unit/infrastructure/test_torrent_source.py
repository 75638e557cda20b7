"""Tests for building debrid submission sources from stored torrent info."""

from __future__ import annotations

import httpx
import pytest
import respx

from trawlarr.domain.entities import DebridError, TorrentInfoRecord
from trawlarr.infrastructure.debrid.torrent_source import (
    build_torrent_source,
    magnet_from_info_hash,
)

_LINK = "https://jackett.example/dl/1.torrent"


def _record(**kwargs) -> TorrentInfoRecord:
    return TorrentInfoRecord(torrent_id="a" * 40, name="Movie 2019", **kwargs)


class TestMagnetFromInfoHash:
    def test_lowercases_and_adds_name(self) -> None:
        assert (
            magnet_from_info_hash("ABCDEF", "Movie 2019")
            == "magnet:?xt=urn:btih:abcdef&dn=Movie%202019"
        )

    def test_without_name(self) -> None:
        assert magnet_from_info_hash("abc") == "magnet:?xt=urn:btih:abc"


class TestBuildTorrentSource:
    async def test_stored_magnet_wins(self, torrent_record) -> None:
        async with httpx.AsyncClient() as http:
            source = await build_torrent_source(http, torrent_record)
        assert source.is_magnet
        assert source.magnet_uri == torrent_record.magnet_uri

    async def test_info_hash_builds_magnet(self) -> None:
        async with httpx.AsyncClient() as http:
            source = await build_torrent_source(
                http, _record(info_hash="ABC", link=_LINK)
            )
        assert source.magnet_uri == "magnet:?xt=urn:btih:abc&dn=Movie%202019"

    @respx.mock
    async def test_downloads_torrent_file(self) -> None:
        respx.get(_LINK).respond(200, content=b"d8:announce")
        async with httpx.AsyncClient() as http:
            source = await build_torrent_source(http, _record(link=_LINK))
        assert not source.is_magnet
        assert source.torrent_file == b"d8:announce"

    @respx.mock
    async def test_redirect_to_magnet(self) -> None:
        magnet = "magnet:?xt=urn:btih:feed"
        respx.get(_LINK).respond(302, headers={"location": magnet})
        async with httpx.AsyncClient() as http:
            source = await build_torrent_source(http, _record(link=_LINK))
        assert source.magnet_uri == magnet

    @respx.mock
    async def test_relative_redirect(self) -> None:
        respx.get(_LINK).respond(302, headers={"location": "/real.torrent"})
        respx.get("https://jackett.example/real.torrent").respond(200, content=b"d4:info")
        async with httpx.AsyncClient() as http:
            source = await build_torrent_source(http, _record(link=_LINK))
        assert source.torrent_file == b"d4:info"

    @respx.mock
    async def test_redirect_loop(self) -> None:
        respx.get(_LINK).respond(302, headers={"location": _LINK})
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError, match="Too many redirects"):
                await build_torrent_source(http, _record(link=_LINK))

    @respx.mock
    async def test_http_error_status(self) -> None:
        respx.get(_LINK).respond(404)
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError) as exc_info:
                await build_torrent_source(http, _record(link=_LINK))
        assert exc_info.value.kind is None

    @respx.mock
    async def test_transport_error(self) -> None:
        respx.get(_LINK).mock(side_effect=httpx.ConnectTimeout("slow"))
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError, match="Torrent download failed"):
                await build_torrent_source(http, _record(link=_LINK))

    async def test_no_source(self) -> None:
        async with httpx.AsyncClient() as http:
            with pytest.raises(DebridError, match="No torrent source"):
                await build_torrent_source(http, _record())
