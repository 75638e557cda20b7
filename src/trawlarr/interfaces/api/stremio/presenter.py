"""Stremio JSON shapes: manifest, metas, streams."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote, urlsplit

from trawlarr.domain.entities import ClassifiedItem
from trawlarr.infrastructure.config.schema import AddonConfig
from trawlarr.infrastructure.indexer.classifier import build_description, sanitize_text

ADDON_VERSION = "0.1.0"

SEARCH_CATALOG_ID = "trawlarr-search"
LATEST_CATALOG_ID = "trawlarr-latest"

QUALITY_LABELS: dict[int, str] = {
    2160: "4K",
    1080: "1080p",
    720: "720p",
    480: "480p",
    360: "360p",
}


def build_manifest(addon: AddonConfig, short_name: str | None = None) -> dict[str, Any]:
    """Add-on manifest; the debrid short name is appended when configured."""
    name = addon.addon_name
    if short_name:
        name = f"{name} {short_name}"
    catalogs = []
    for content_type in ("movie", "series"):
        catalogs.append(
            {
                "type": content_type,
                "id": SEARCH_CATALOG_ID,
                "name": f"{addon.addon_name} Search",
                "extra": [{"name": "search", "isRequired": True}],
            }
        )
        catalogs.append(
            {
                "type": content_type,
                "id": LATEST_CATALOG_ID,
                "name": f"{addon.addon_name} Latest",
                "extra": [{"name": "search", "isRequired": True}],
            }
        )
    return {
        "id": addon.addon_id,
        "version": ADDON_VERSION,
        "name": name,
        "description": addon.description,
        "resources": ["catalog", "meta", "stream"],
        "types": ["movie", "series"],
        "idPrefixes": ["tt", "ns:"],
        "catalogs": catalogs,
        "behaviorHints": {"configurable": True},
    }


def meta_preview(item: ClassifiedItem) -> dict[str, Any]:
    t = item.torrent
    meta: dict[str, Any] = {
        "id": item.stable_id,
        "type": item.content_type,
        "name": f"[{sanitize_text(t.tracker_name)}] {item.display_title}",
        "description": build_description(item),
    }
    if t.year and t.year > 1900:
        meta["releaseInfo"] = str(t.year)
    return meta


def meta_detail(item: ClassifiedItem) -> dict[str, Any]:
    meta = meta_preview(item)
    meta["description"] = "\n".join(
        [sanitize_text(item.torrent.title), build_description(item)]
    )
    return meta


def quality_label(quality: int) -> str:
    return QUALITY_LABELS.get(quality, "")


def build_stream(
    item: ClassifiedItem,
    *,
    addon_name: str,
    short_name: str,
    public_url: str,
    user_config: str,
    stremio_id: str,
) -> dict[str, str]:
    """One stream entry pointing at this add-on's download endpoint."""
    t = item.torrent
    name = f"[{short_name}] {addon_name} {quality_label(t.quality)}".strip()
    url = (
        f"{public_url}/{user_config}/download/{item.content_type}/"
        f"{quote(stremio_id, safe=':')}/{t.torrent_id}/{quote(t.title, safe='')}"
    )
    return {
        "name": name,
        "title": f"{item.display_title}\n{build_description(item)}",
        "url": url,
    }


def configure_stream(addon_name: str) -> dict[str, str]:
    """Placeholder stream shown until the add-on is configured."""
    return {
        "name": addon_name,
        "title": "Configure this add-on with a debrid account to access streams.",
        "url": "#",
    }


def fallback_video_path(kind: str | None) -> str:
    return f"/videos/{kind or 'error'}.mp4"


def mask_url(url: str) -> str:
    """Log-safe form of a direct link: host kept, path and query cut."""

    def cut(value: str) -> str:
        return f"{value[:5]}******{value[-5:]}" if value else ""

    parts = urlsplit(url)
    query = f"?{parts.query}" if parts.query else ""
    return f"{parts.scheme}://{parts.netloc}{cut(parts.path)}{cut(query)}"
