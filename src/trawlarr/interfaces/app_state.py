"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from trawlarr.infrastructure.config import AppConfig
from trawlarr.infrastructure.graceful_shutdown import GracefulShutdown

if TYPE_CHECKING:
    import asyncio

    from trawlarr.application.use_cases import (
        CatalogSearchUseCase,
        IndexerSearchUseCase,
        ResolveDownloadUseCase,
    )
    from trawlarr.domain.ports import (
        CachePort,
        IndexerClientPort,
        SelectionRepository,
        TorrentInfoStorePort,
    )
    from trawlarr.infrastructure.debrid import DebridProviderRegistry
    from trawlarr.infrastructure.indexer.circuit_breaker import IndexerCircuitBreaker
    from trawlarr.infrastructure.maintenance.scheduler import MaintenanceScheduler


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient
    indexer_client: IndexerClientPort
    circuit_breaker: IndexerCircuitBreaker
    torrent_info_store: TorrentInfoStorePort
    selection_repo: SelectionRepository
    debrid_registry: DebridProviderRegistry

    # Use cases
    indexer_search_uc: IndexerSearchUseCase
    catalog_search_uc: CatalogSearchUseCase
    resolve_download_uc: ResolveDownloadUseCase

    # Background maintenance (retention sweep)
    maintenance_scheduler: MaintenanceScheduler
    _maintenance_task: asyncio.Task | None

    graceful_shutdown: GracefulShutdown
