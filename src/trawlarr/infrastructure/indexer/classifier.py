"""Title heuristics: movie vs. series, single episode, display title, stable id.

The rules only look at the release title. Misclassifying an oddly named
release is accepted; indexer category metadata is not consulted.
"""

from __future__ import annotations

import hashlib
import re

from trawlarr.domain.entities.torrent import CanonicalTorrent, ClassifiedItem
from trawlarr.infrastructure.common.converters import format_size
from trawlarr.infrastructure.indexer.canonicalizer import RESOLUTION_RE, YEAR_RE

MAX_TEXT_LENGTH = 500
STABLE_ID_PREFIX = "ns:"

# Release names separate words with spaces, dots, underscores or dashes.
_SEP = r"[\s._-]+"

_EPISODE_PATTERNS = [
    re.compile(r"\bS\d{1,2}E\d{1,2}\b", re.IGNORECASE),
    re.compile(r"\bS\d{1,2}\s*-\s*E\d{1,2}\b", re.IGNORECASE),
    re.compile(rf"\bSeason{_SEP}\d+{_SEP}Episode{_SEP}\d+\b", re.IGNORECASE),
    re.compile(rf"\bEpisode{_SEP}\d+\b", re.IGNORECASE),
]

_PACK_RE = re.compile(
    rf"\b(Complete|Full{_SEP}Season|Season{_SEP}Pack|Box{_SEP}Set)\b",
    re.IGNORECASE,
)

_SERIES_PATTERNS = [
    re.compile(r"\bS\d{1,2}\b", re.IGNORECASE),
    re.compile(rf"\bSeason{_SEP}\d+\b", re.IGNORECASE),
    re.compile(rf"\bSeries{_SEP}\d+\b", re.IGNORECASE),
    re.compile(rf"\bComplete{_SEP}Series\b", re.IGNORECASE),
    re.compile(rf"\bBox{_SEP}Set\b", re.IGNORECASE),
    re.compile(rf"\bComplete{_SEP}Collection\b", re.IGNORECASE),
]

_BRACKETS_RE = re.compile(r"[\[\]()]")
_WS_RE = re.compile(r"\s+")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


def is_single_episode(title: str) -> bool:
    """Episode marker present and no season-pack marker."""
    has_episode = any(p.search(title) for p in _EPISODE_PATTERNS)
    return has_episode and not _PACK_RE.search(title)


def looks_like_series(title: str) -> bool:
    return any(p.search(title) for p in _SERIES_PATTERNS)


def sanitize_text(text: str | None) -> str:
    """Strip control characters and angle brackets, trim, cap length."""
    if not text:
        return ""
    cleaned = _CONTROL_RE.sub(" ", str(text)).replace("<", "").replace(">", "")
    return cleaned.strip()[:MAX_TEXT_LENGTH]


def clean_title(title: str) -> str:
    """Display title without resolution, year and bracket tokens."""
    cleaned = RESOLUTION_RE.sub("", title)
    cleaned = YEAR_RE.sub("", cleaned)
    cleaned = _BRACKETS_RE.sub(" ", cleaned)
    cleaned = _WS_RE.sub(" ", cleaned).strip(" .-_")
    return sanitize_text(cleaned or title)


def stable_id_for(torrent: CanonicalTorrent) -> str:
    """IMDb id when known, else a namespaced hash of guid/link/title."""
    if torrent.imdb_id:
        return torrent.imdb_id
    digest = hashlib.sha256(torrent.identity.encode("utf-8")).hexdigest()
    return f"{STABLE_ID_PREFIX}{digest[:16]}"


def classify(torrent: CanonicalTorrent) -> ClassifiedItem:
    title = torrent.title
    if is_single_episode(title):
        content_type, single = "series", True
    elif looks_like_series(title):
        content_type, single = "series", False
    else:
        content_type, single = "movie", False
    return ClassifiedItem(
        torrent=torrent,
        content_type=content_type,
        is_single_episode=single,
        stable_id=stable_id_for(torrent),
        display_title=clean_title(title),
    )


def build_description(item: ClassifiedItem) -> str:
    """One-line catalog description: tracker, size, swarm, year."""
    t = item.torrent
    parts = [f"Tracker: {sanitize_text(t.tracker_name)}"]
    if t.size_bytes:
        parts.append(f"Size: {format_size(t.size_bytes)}")
    if t.seeders > 0:
        parts.append(f"Seeders: {t.seeders}")
    if t.leechers > 0:
        parts.append(f"Leechers: {t.leechers}")
    if t.year:
        parts.append(f"Year: {t.year}")
    return sanitize_text(" • ".join(parts))
