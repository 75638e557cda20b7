"""Redis adapter - async Redis via redis.asyncio."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """Async Redis cache; values are JSON text, TTL via SETEX.

    Args:
        url: Redis URL (e.g. ``redis://localhost:6379/0``).
        ttl_seconds: TTL used by ``set()`` when none is given.
        max_concurrent: Max parallel Redis operations.
        namespace: Key prefix, so one Redis DB can be shared.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        ttl_seconds: int = 3600,
        max_concurrent: int = 50,
        namespace: str = "trawlarr",
    ) -> None:
        self.url = url
        self.default_ttl = ttl_seconds
        self.namespace = namespace
        self._client: Redis | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

    def _k(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def __aenter__(self) -> RedisAdapter:
        if self._client is None:
            self._client = Redis.from_url(self.url, decode_responses=True)
            try:
                await self._client.ping()
                log.info("redis_connected", url=self.url)
            except RedisError as e:
                log.error("redis_connection_failed", url=self.url, error=str(e))
                raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("redis_closed")

    async def get(self, key: str) -> Any | None:
        if self._client is None:
            raise RuntimeError("Redis not initialized. Use 'async with cache:'")
        async with self._semaphore:
            try:
                raw = await self._client.get(self._k(key))
            except RedisError as e:
                log.error("redis_get_error", key=key, error=str(e))
                return None
        if raw is None:
            log.debug("cache_miss", key=key)
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            log.warning("cache_value_corrupt", key=key)
            return None

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        if self._client is None:
            raise RuntimeError("Redis not initialized.")
        expire_time = ttl if ttl is not None else self.default_ttl
        try:
            packed = json.dumps(value)
        except TypeError as e:
            log.error("cache_serialize_error", key=key, error=str(e))
            return
        async with self._semaphore:
            try:
                await self._client.setex(self._k(key), expire_time, packed)
            except RedisError as e:
                log.error("redis_set_error", key=key, error=str(e))
                return
        log.debug("cache_set", key=key, ttl=expire_time, size_bytes=len(packed))

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            try:
                return await self._client.delete(self._k(key)) > 0
            except RedisError as e:
                log.error("redis_delete_error", key=key, error=str(e))
                return False

    async def exists(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            try:
                return await self._client.exists(self._k(key)) > 0
            except RedisError as e:
                log.error("redis_exists_error", key=key, error=str(e))
                return False

    async def clear(self) -> None:
        """Delete every key under this adapter's namespace."""
        if self._client is None:
            return
        async with self._semaphore:
            try:
                keys = [k async for k in self._client.scan_iter(match=self._k("*"))]
                if keys:
                    await self._client.delete(*keys)
                log.warning("redis_namespace_cleared", namespace=self.namespace, keys=len(keys))
            except RedisError as e:
                log.error("redis_clear_error", error=str(e))

    async def expire(self) -> int:
        # Redis evicts expired keys itself.
        return 0
