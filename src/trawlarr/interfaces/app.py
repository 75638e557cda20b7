"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from trawlarr.infrastructure.config import AppConfig
from trawlarr.infrastructure.graceful_shutdown import GracefulShutdown
from trawlarr.interfaces.app_state import AppState
from trawlarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration only, no resource initialization.

    Resources (HTTP client, cache, stores) are created in lifespan().
    """
    app = FastAPI(
        title="Trawlarr",
        description="Jackett search catalog with debrid streaming for Stremio",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config
    app.state.graceful_shutdown = GracefulShutdown()

    from trawlarr.interfaces.api.stremio.router import router as stremio_router

    app.include_router(stremio_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, object]:
        """Liveness check: 200 while the process runs."""
        registry = getattr(app.state, "debrid_registry", None)
        breaker = getattr(app.state, "circuit_breaker", None)
        return {
            "status": "ok",
            "debrid_providers": registry.supported_providers if registry else [],
            "indexers": breaker.snapshot() if breaker else {},
        }

    @app.get("/readyz")
    async def readyz() -> Response:
        """Readiness check: 200 after startup, 503 before and while draining."""
        gs: GracefulShutdown = app.state.graceful_shutdown
        if gs.is_ready:
            return JSONResponse({"status": "ready"}, status_code=200)
        return JSONResponse({"status": "not_ready"}, status_code=503)

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        gs: GracefulShutdown = app.state.graceful_shutdown
        start = time.perf_counter()
        response: Response | None = None
        async with gs.track():
            try:
                response = await call_next(request)
                return response
            finally:
                duration_ms = (time.perf_counter() - start) * 1000.0
                log.info(
                    "http_request",
                    method=request.method,
                    # the first path segment is the base64 user config
                    route=_route_template(request),
                    status_code=response.status_code if response else 500,
                    duration_ms=round(duration_ms, 2),
                    client_host=(request.client.host if request.client else None),
                )

    return app


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


build_app = create_app
