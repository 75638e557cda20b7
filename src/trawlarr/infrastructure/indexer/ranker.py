"""Type filtering, first-seen dedup and ranking of classified items."""

from __future__ import annotations

from collections.abc import Iterable

from trawlarr.domain.entities.torrent import CatalogMode, ClassifiedItem, ContentType

DEFAULT_LIMITS: dict[CatalogMode, int] = {
    CatalogMode.SEARCH: 30,
    CatalogMode.BROWSE: 100,
}


def filter_by_type(
    items: Iterable[ClassifiedItem], content_type: ContentType | None
) -> list[ClassifiedItem]:
    """Keep items of ``content_type``; ``None`` (mixed) keeps everything."""
    if content_type is None:
        return list(items)
    return [item for item in items if item.content_type == content_type]


def deduplicate(items: Iterable[ClassifiedItem]) -> list[ClassifiedItem]:
    """Drop later items whose stable id was already seen. Never merges."""
    seen: set[str] = set()
    out: list[ClassifiedItem] = []
    for item in items:
        if item.stable_id in seen:
            continue
        seen.add(item.stable_id)
        out.append(item)
    return out


def rank(
    items: Iterable[ClassifiedItem],
    mode: CatalogMode = CatalogMode.SEARCH,
    limit: int | None = None,
) -> list[ClassifiedItem]:
    """Sort (stable) by seeders or publish date, newest/most seeded first, then truncate."""
    if mode is CatalogMode.BROWSE:
        ordered = sorted(items, key=lambda i: i.publish_date, reverse=True)
    else:
        ordered = sorted(items, key=lambda i: i.seeders, reverse=True)
    cap = DEFAULT_LIMITS[mode] if limit is None else limit
    return ordered[: max(cap, 0)]


def select_catalog(
    items: Iterable[ClassifiedItem],
    content_type: ContentType | None,
    mode: CatalogMode = CatalogMode.SEARCH,
    limit: int | None = None,
) -> list[ClassifiedItem]:
    """filter -> dedup -> rank, the order every catalog response goes through."""
    return rank(deduplicate(filter_by_type(items, content_type)), mode, limit)
