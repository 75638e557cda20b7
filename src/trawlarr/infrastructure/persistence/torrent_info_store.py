"""Torrent info store backed by a dedicated diskcache folder.

Records are JSON text keyed by torrent id. Each entry expires
``retention_seconds`` after its ``created_at``; ``sweep()`` is
``diskcache.Cache.expire()``. Ids held by an in-flight resolution are
re-touched so they outlive the sweep.
"""

from __future__ import annotations

import asyncio
import json
import re
import time
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any

import structlog
from diskcache import Cache as DiskCache

from trawlarr.domain.entities.errors import TorrentInfoNotFound
from trawlarr.domain.entities.torrent import TorrentInfoRecord

log = structlog.get_logger(__name__)

_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,128}$")

# Minimum lifetime of a pinned record, longer than any poll budget.
PIN_GRACE_SECONDS = 600


def is_valid_torrent_id(torrent_id: str) -> bool:
    """Only a safe alphabet is accepted as a key."""
    return bool(_ID_RE.match(torrent_id))


def _serialize_record(record: TorrentInfoRecord) -> str:
    return json.dumps(asdict(record))


def _deserialize_record(data: str) -> TorrentInfoRecord:
    d: dict[str, Any] = json.loads(data)
    return TorrentInfoRecord(
        torrent_id=d["torrent_id"],
        link=d.get("link"),
        magnet_uri=d.get("magnet_uri"),
        info_hash=d.get("info_hash"),
        name=d.get("name", ""),
        size_bytes=int(d.get("size_bytes", 0)),
        created_at=float(d.get("created_at", 0.0)),
    )


class DiskcacheTorrentInfoStore:
    """Durable ``torrent_id -> TorrentInfoRecord`` mapping with a retention sweep.

    Args:
        directory: diskcache folder (SQLite DB plus value files).
        retention_seconds: Lifetime of a record, counted from ``created_at``.
    """

    def __init__(
        self,
        directory: str | Path,
        retention_seconds: int = 7 * 86400,
    ) -> None:
        self.directory = Path(directory)
        self.retention_seconds = retention_seconds
        self._cache: DiskCache | None = None
        self._pins: Counter[str] = Counter()

    async def open(self) -> None:
        if self._cache is None:
            self._cache = await asyncio.to_thread(DiskCache, str(self.directory))
            log.info("torrent_info_store_opened", directory=str(self.directory))

    async def aclose(self) -> None:
        if self._cache is not None:
            await asyncio.to_thread(self._cache.close)
            self._cache = None
            log.info("torrent_info_store_closed", directory=str(self.directory))

    def _require_open(self) -> DiskCache:
        if self._cache is None:
            raise RuntimeError("Torrent info store not opened. Call 'await store.open()'")
        return self._cache

    def _expire_for(self, torrent_id: str, created_at: float) -> float:
        remaining = created_at + self.retention_seconds - time.time()
        if self.is_pinned(torrent_id):
            remaining = max(remaining, PIN_GRACE_SECONDS)
        return remaining

    # --- put / get ---

    async def put(self, record: TorrentInfoRecord) -> TorrentInfoRecord:
        """Upsert ``record``.

        A new record keeps a non-zero ``created_at`` and is stamped with
        the current time otherwise; an existing record's ``created_at``
        always wins.

        Raises:
            ValueError: ``record.torrent_id`` is not a safe key.
        """
        if not is_valid_torrent_id(record.torrent_id):
            raise ValueError(f"Invalid torrent id: {record.torrent_id!r}")
        cache = self._require_open()
        stored = await asyncio.to_thread(self._put_sync, cache, record)
        log.debug(
            "torrent_info_stored",
            torrent_id=record.torrent_id,
            created_at=stored.created_at,
        )
        return stored

    def _put_sync(self, cache: DiskCache, record: TorrentInfoRecord) -> TorrentInfoRecord:
        key = record.torrent_id
        with cache.transact():
            created_at = record.created_at or time.time()
            existing = cache.get(key)
            if existing is not None:
                try:
                    created_at = _deserialize_record(existing).created_at
                except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                    log.warning("torrent_info_overwrite_corrupt", torrent_id=key)
            stored = replace(record, created_at=created_at)
            cache.set(
                key, _serialize_record(stored), expire=self._expire_for(key, created_at)
            )
        return stored

    async def get(self, torrent_id: str) -> TorrentInfoRecord:
        """Return the stored record.

        Raises:
            TorrentInfoNotFound: Unknown, expired or unsafe id, or an
                unreadable entry.
        """
        if not is_valid_torrent_id(torrent_id):
            raise TorrentInfoNotFound(torrent_id)
        cache = self._require_open()
        data = await asyncio.to_thread(cache.get, torrent_id)
        if data is None:
            log.debug("torrent_info_not_found", torrent_id=torrent_id)
            raise TorrentInfoNotFound(torrent_id)
        try:
            return _deserialize_record(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            log.error("torrent_info_deserialize_error", torrent_id=torrent_id, error=str(e))
            raise TorrentInfoNotFound(torrent_id) from e

    # --- pinning ---

    @asynccontextmanager
    async def pinned(self, torrent_id: str) -> AsyncIterator[None]:
        """Keep ``torrent_id`` out of ``sweep()`` for the duration of the block."""
        self._pins[torrent_id] += 1
        try:
            if self._cache is not None and is_valid_torrent_id(torrent_id):
                await asyncio.to_thread(self._hold, self._cache, torrent_id)
            yield
        finally:
            self._pins[torrent_id] -= 1
            if self._pins[torrent_id] <= 0:
                del self._pins[torrent_id]

    def is_pinned(self, torrent_id: str) -> bool:
        return self._pins.get(torrent_id, 0) > 0

    @staticmethod
    def _hold(cache: DiskCache, torrent_id: str) -> None:
        """Extend a live entry that would expire within the pin grace."""
        value, expire_time = cache.get(torrent_id, expire_time=True)
        if value is None:
            return
        if expire_time is not None and expire_time - time.time() < PIN_GRACE_SECONDS:
            cache.touch(torrent_id, expire=PIN_GRACE_SECONDS)

    # --- sweep ---

    async def sweep(self) -> int:
        """Purge records past the retention window; pinned ids survive.

        Returns the number of entries removed.
        """
        if self._cache is None:
            return 0
        cache = self._cache
        pinned = list(self._pins)
        removed = await asyncio.to_thread(self._sweep_sync, cache, pinned)
        log.info(
            "torrent_info_sweep_done",
            removed=removed,
            pinned=len(pinned),
            retention_seconds=self.retention_seconds,
        )
        return removed

    def _sweep_sync(self, cache: DiskCache, pinned: list[str]) -> int:
        for torrent_id in pinned:
            self._hold(cache, torrent_id)
        return cache.expire()
