"""Tests for Stremio response shapes."""

from __future__ import annotations

from trawlarr.infrastructure.config.schema import AddonConfig
from trawlarr.interfaces.api.stremio.presenter import (
    LATEST_CATALOG_ID,
    SEARCH_CATALOG_ID,
    build_manifest,
    build_stream,
    configure_stream,
    fallback_video_path,
    mask_url,
    meta_detail,
    meta_preview,
    quality_label,
)


class TestManifest:
    def test_unconfigured(self) -> None:
        m = build_manifest(AddonConfig())
        assert m["id"] == "community.trawlarr"
        assert m["name"] == "Trawlarr"
        assert m["resources"] == ["catalog", "meta", "stream"]
        assert m["types"] == ["movie", "series"]
        assert m["idPrefixes"] == ["tt", "ns:"]
        assert m["behaviorHints"] == {"configurable": True}

    def test_catalogs(self) -> None:
        catalogs = build_manifest(AddonConfig())["catalogs"]
        assert {(c["type"], c["id"]) for c in catalogs} == {
            ("movie", SEARCH_CATALOG_ID),
            ("movie", LATEST_CATALOG_ID),
            ("series", SEARCH_CATALOG_ID),
            ("series", LATEST_CATALOG_ID),
        }
        assert all(c["extra"] == [{"name": "search", "isRequired": True}] for c in catalogs)

    def test_short_name_appended(self) -> None:
        assert build_manifest(AddonConfig(), "RD")["name"] == "Trawlarr RD"


class TestMetas:
    def test_preview(self, item_factory) -> None:
        item = item_factory("Movie (2019) [1080p]", year=2019)
        meta = meta_preview(item)
        assert meta["id"] == item.stable_id
        assert meta["type"] == "movie"
        assert meta["name"] == "[ExampleTracker] Movie"
        assert meta["releaseInfo"] == "2019"
        assert meta["description"].startswith("Tracker: ExampleTracker")

    def test_preview_without_year(self, item_factory) -> None:
        assert "releaseInfo" not in meta_preview(item_factory("Movie"))

    def test_detail_prefixes_raw_title(self, item_factory) -> None:
        item = item_factory("Movie (2019) [1080p]")
        assert meta_detail(item)["description"].startswith("Movie (2019) [1080p]\nTracker:")


class TestStreams:
    def test_build_stream(self, item_factory) -> None:
        item = item_factory("Show S01E02 1080p", quality=1080)
        entry = build_stream(
            item,
            addon_name="Trawlarr",
            short_name="RD",
            public_url="https://addon.example",
            user_config="eyJ9",
            stremio_id="tt0944947:1:2",
        )
        assert entry["name"] == "[RD] Trawlarr 1080p"
        assert entry["title"].startswith(item.display_title + "\n")
        assert entry["url"] == (
            "https://addon.example/eyJ9/download/series/tt0944947:1:2/"
            f"{item.torrent.torrent_id}/Show%20S01E02%201080p"
        )

    def test_unknown_quality_has_no_label(self, item_factory) -> None:
        entry = build_stream(
            item_factory("Movie"),
            addon_name="Trawlarr",
            short_name="AD",
            public_url="",
            user_config="x",
            stremio_id="tt1",
        )
        assert entry["name"] == "[AD] Trawlarr"

    def test_configure_stream(self) -> None:
        assert configure_stream("Trawlarr")["url"] == "#"

    def test_quality_label(self) -> None:
        assert quality_label(2160) == "4K"
        assert quality_label(0) == ""


class TestHelpers:
    def test_fallback_video_path(self) -> None:
        assert fallback_video_path("not_ready") == "/videos/not_ready.mp4"
        assert fallback_video_path(None) == "/videos/error.mp4"

    def test_mask_url(self) -> None:
        masked = mask_url("https://cdn.example/d/ABCDEFGHIJKLMNOP/file.mkv?token=secret123")
        assert masked == "https://cdn.example/d/AB******e.mkv?toke******et123"
        assert "secret123" not in masked

    def test_mask_url_without_query(self) -> None:
        assert mask_url("https://cdn.example/abcdefghijkl") == (
            "https://cdn.example/abcd******hijkl"
        )
