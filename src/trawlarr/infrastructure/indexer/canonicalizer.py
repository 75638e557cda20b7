"""Canonicalize raw Jackett records into ``CanonicalTorrent``.

Two wire shapes exist:

- ``torznab``: an ``rss/channel/item`` element converted to a dict where
  XML attributes live under ``"$"`` and element text under ``"_"``
  (see ``jackett_client.element_to_dict``). Seeders, peers, info hash and
  friends are ``<torznab:attr name=... value=...>`` children.
- ``json``: one entry of the ``Results`` array of
  ``/api/v2.0/indexers/{id}/results`` with PascalCase keys.

Each shape has its own decoder; ``canonicalize`` dispatches on
``RawResult.shape``.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Callable

from trawlarr.domain.entities.torrent import CanonicalTorrent, RawResult
from trawlarr.infrastructure.common.converters import to_int

IMDB_RE = re.compile(r"\btt\d{7,8}(?!\d)", re.IGNORECASE)
_IMDB_MAX = 99_999_999
YEAR_RE = re.compile(r"\b(19\d{2}|20\d{2})\b")
RESOLUTION_RE = re.compile(r"\b(2160|1080|720|480|360)p\b", re.IGNORECASE)
_UHD_RE = re.compile(r"\b(4k|uhd)\b", re.IGNORECASE)


def merge_attribute_bags(value: Any) -> Any:
    """Lift every nested ``"$"`` attribute container into its parent.

    Element keys win over attribute keys with the same name. Works on
    nested dicts and lists; other values are returned unchanged.
    """
    if isinstance(value, list):
        return [merge_attribute_bags(v) for v in value]
    if not isinstance(value, dict):
        return value
    merged: dict[str, Any] = {}
    attrs = value.get("$")
    if isinstance(attrs, dict):
        merged.update(attrs)
    for key, child in value.items():
        if key == "$":
            continue
        merged[key] = merge_attribute_bags(child)
    return merged


def _numeric_imdb(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value.isdigit():
            return None
    if not isinstance(value, (int, str)):
        return None
    number = int(value)
    if 0 < number <= _IMDB_MAX:
        return f"tt{number:07d}"
    return None


def extract_imdb_id(*fields: Any, title: str | None = None) -> str | None:
    """First IMDb id (``tt\\d{7,8}``) among the indexer's IMDb ``fields``, lower-cased.

    Jackett reports numeric ids (``Imdb: 133093``); those are rendered as
    ``tt0133093``. The ``title`` is searched last and only for an explicit
    ``tt`` id, so a bare numeric title such as ``1917`` is never an id.
    """
    for field in fields:
        if field is None:
            continue
        numeric = _numeric_imdb(field)
        if numeric:
            return numeric
        match = IMDB_RE.search(str(field))
        if match:
            return match.group(0).lower()
    if title:
        match = IMDB_RE.search(title)
        if match:
            return match.group(0).lower()
    return None


def extract_year(title: str) -> int | None:
    match = YEAR_RE.search(title)
    return int(match.group(1)) if match else None


def extract_quality(title: str) -> int:
    match = RESOLUTION_RE.search(title)
    if match:
        return int(match.group(1))
    if _UHD_RE.search(title):
        return 2160
    return 0


def parse_publish_date(raw: Any) -> int:
    """Epoch seconds from an RFC-822 (``pubDate``) or ISO-8601 string; 0 if unknown."""
    if not raw or not isinstance(raw, str):
        return 0
    text = raw.strip()
    dt: datetime | None = None
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            dt = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            return 0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return max(int(dt.timestamp()), 0)


def _text(value: Any) -> str | None:
    """Element text of an xml2js-style node (plain string or ``{"_": ...}``)."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("_")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _torznab_attrs(item: dict[str, Any]) -> dict[str, Any]:
    bag = item.get("torznab:attr") or []
    if isinstance(bag, dict):
        bag = [bag]
    attrs: dict[str, Any] = {}
    for entry in bag:
        if isinstance(entry, dict) and entry.get("name"):
            attrs[str(entry["name"]).lower()] = entry.get("value")
    return attrs


def _tracker_from_xml(item: dict[str, Any]) -> str:
    node = item.get("jackettindexer")
    if isinstance(node, dict):
        return _text(node) or str(node.get("id") or "") or "Unknown"
    return _text(node) or "Unknown"


def _build(title: str, **fields: Any) -> CanonicalTorrent:
    info_hash = fields.pop("info_hash", None)
    return CanonicalTorrent(
        title=title,
        info_hash=info_hash.lower() if info_hash else None,
        year=extract_year(title),
        quality=extract_quality(title),
        **fields,
    )


def decode_torznab_item(fields: dict[str, Any], indexer: str = "") -> CanonicalTorrent | None:
    """Decode one Torznab XML item. Returns None when the title is missing."""
    item = merge_attribute_bags(fields)
    title = _text(item.get("title"))
    if not title:
        return None
    attrs = _torznab_attrs(item)

    link = _text(item.get("link"))
    enclosure = item.get("enclosure")
    if not link and isinstance(enclosure, dict):
        link = enclosure.get("url") or None

    return _build(
        title,
        guid=_text(item.get("guid")),
        link=link,
        info_hash=attrs.get("infohash") or None,
        magnet_uri=attrs.get("magneturl") or None,
        size_bytes=max(to_int(_text(item.get("size")) or attrs.get("size")), 0),
        seeders=max(to_int(attrs.get("seeders")), 0),
        peers=max(to_int(attrs.get("peers")), 0),
        tracker_name=_tracker_from_xml(item),
        imdb_id=extract_imdb_id(attrs.get("imdbid"), attrs.get("imdb"), title=title),
        publish_date=parse_publish_date(_text(item.get("pubDate"))),
        indexer=indexer,
    )


def decode_json_result(fields: dict[str, Any], indexer: str = "") -> CanonicalTorrent | None:
    """Decode one entry of Jackett's JSON ``Results`` array."""
    title = str(fields.get("Title") or "").strip()
    if not title:
        return None
    return _build(
        title,
        guid=fields.get("Guid") or None,
        link=fields.get("Link") or None,
        info_hash=fields.get("InfoHash") or None,
        magnet_uri=fields.get("MagnetUri") or None,
        size_bytes=max(to_int(fields.get("Size")), 0),
        seeders=max(to_int(fields.get("Seeders")), 0),
        peers=max(to_int(fields.get("Peers")), 0),
        tracker_name=str(fields.get("Tracker") or fields.get("TrackerId") or "Unknown"),
        imdb_id=extract_imdb_id(fields.get("Imdb"), title=title),
        publish_date=parse_publish_date(fields.get("PublishDate")),
        indexer=indexer or str(fields.get("TrackerId") or ""),
    )


_DECODERS: dict[str, Callable[[dict[str, Any], str], CanonicalTorrent | None]] = {
    "torznab": decode_torznab_item,
    "json": decode_json_result,
}


def canonicalize(raw: RawResult, indexer: str = "") -> CanonicalTorrent | None:
    """Decode ``raw`` with the decoder matching its shape.

    Raises:
        ValueError: Unknown shape.
    """
    try:
        decoder = _DECODERS[raw.shape]
    except KeyError:
        raise ValueError(f"Unknown raw result shape: {raw.shape!r}") from None
    return decoder(raw.fields, indexer)
