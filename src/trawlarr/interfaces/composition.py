"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from trawlarr.application.use_cases import (
    CatalogSearchUseCase,
    IndexerSearchUseCase,
    ResolveDownloadUseCase,
)
from trawlarr.domain.entities import CatalogMode
from trawlarr.infrastructure.cache.cache_factory import create_cache
from trawlarr.infrastructure.debrid import DebridProviderRegistry
from trawlarr.infrastructure.indexer.circuit_breaker import IndexerCircuitBreaker
from trawlarr.infrastructure.indexer.jackett_client import JackettClient
from trawlarr.infrastructure.maintenance.scheduler import MaintenanceScheduler
from trawlarr.infrastructure.persistence.selection_cache import (
    CacheSelectionRepository,
)
from trawlarr.infrastructure.persistence.torrent_info_store import (
    DiskcacheTorrentInfoStore,
)
from trawlarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Cache (result cache + selection repository)
        2. HTTP Client (Jackett, debrid providers, .torrent downloads)
        3. Torrent info store (folder must exist before the first download)
        4. Indexer fan-out and catalog use cases
        5. Debrid registry and download resolver
        6. Maintenance scheduler (background task)
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Cache
    cache = create_cache(
        backend=config.cache.backend,
        directory=str(config.cache.directory),
        redis_url=config.cache.redis_url,
        ttl_seconds=config.cache.ttl_seconds,
        max_concurrent=config.cache.max_concurrent,
    )
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_initialized", backend=config.cache.backend)

    # 2) Shared HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 3) Torrent info store
    store = DiskcacheTorrentInfoStore(
        directory=config.debrid.torrent_info_dir,
        retention_seconds=config.debrid.torrent_info_retention_seconds,
    )
    await store.open()
    state.torrent_info_store = store

    state.selection_repo = CacheSelectionRepository(
        cache=state.cache,
        ttl_seconds=config.catalog.selection_ttl_seconds,
    )

    # 4) Indexer fan-out + result cache
    state.indexer_client = JackettClient(
        http_client=state.http_client,
        base_url=config.jackett.url,
        api_key=config.jackett.api_key,
    )
    state.circuit_breaker = IndexerCircuitBreaker(
        failure_threshold=config.jackett.failure_threshold,
        cooldown_seconds=config.jackett.cooldown_seconds,
    )
    state.indexer_search_uc = IndexerSearchUseCase(
        state.indexer_client,
        timeout_seconds=config.jackett.search_timeout_seconds,
        min_query_length=config.catalog.min_query_length,
        breaker=state.circuit_breaker,
    )
    state.catalog_search_uc = CatalogSearchUseCase(
        state.indexer_search_uc,
        state.cache,
        cache_ttl=config.catalog.cache_ttl_seconds,
        min_query_length=config.catalog.min_query_length,
        limits={
            CatalogMode.SEARCH: config.catalog.search_limit,
            CatalogMode.BROWSE: config.catalog.browse_limit,
        },
        skip_single_episodes=config.catalog.skip_single_episodes,
    )
    log.info(
        "indexer_search_initialized",
        jackett_url=config.jackett.url,
        timeout=config.jackett.search_timeout_seconds,
    )

    # 5) Debrid
    state.debrid_registry = DebridProviderRegistry(
        state.http_client,
        request_timeout=config.debrid.request_timeout_seconds,
    )
    state.resolve_download_uc = ResolveDownloadUseCase(
        store,
        state.debrid_registry,
        state.http_client,
        poll_interval=config.debrid.poll_interval_seconds,
        max_poll_attempts=config.debrid.max_poll_attempts,
    )
    log.info(
        "debrid_registry_initialized",
        providers=state.debrid_registry.supported_providers,
    )

    # 6) Maintenance sweep
    state.maintenance_scheduler = MaintenanceScheduler(
        store=store,
        cache=state.cache,
        interval_seconds=config.debrid.sweep_interval_seconds,
    )
    state._maintenance_task = asyncio.create_task(
        state.maintenance_scheduler.run_forever()
    )

    state.graceful_shutdown.mark_ready()
    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.graceful_shutdown.wait_for_drain(timeout=10.0)

        if state._maintenance_task is not None:
            state._maintenance_task.cancel()
            with suppress(asyncio.CancelledError):
                await state._maintenance_task
            log.info("maintenance_scheduler_stopped")

        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.torrent_info_store.aclose()
        log.info("torrent_info_store_closed")

        await state.cache.aclose()
        log.info("cache_closed")

        log.info("app_shutdown_complete")
