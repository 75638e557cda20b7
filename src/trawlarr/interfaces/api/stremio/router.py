"""Stremio add-on endpoints (manifest, catalog, meta, stream, download)."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from starlette.responses import Response

from trawlarr.domain.entities import (
    CatalogMode,
    ClassifiedItem,
    ContentType,
    DebridError,
    TorrentInfoNotFound,
    UnknownDebridProvider,
    UserConfig,
)
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
)
from trawlarr.interfaces.api.stremio.user_config import (
    InvalidUserConfig,
    decode_user_config,
)
from trawlarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stremio"])

_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}

_CATALOG_MODES: dict[str, CatalogMode] = {
    SEARCH_CATALOG_ID: CatalogMode.SEARCH,
    LATEST_CATALOG_ID: CatalogMode.BROWSE,
}

TORRENT_META_NOT_FOUND = "Torrent meta not found. Please search again from catalog."


def _respond(content: dict[str, Any]) -> JSONResponse:
    return JSONResponse(content=content, headers=_HEADERS)


def _content_type(raw: str) -> ContentType | None:
    return cast(ContentType, raw) if raw in ("movie", "series") else None


def _base_id(stremio_id: str) -> str:
    """Strip a trailing ``:<season>:<episode>`` from a series stream id."""
    parts = stremio_id.split(":")
    if len(parts) >= 3 and parts[-1].isdigit() and parts[-2].isdigit():
        return ":".join(parts[:-2])
    return stremio_id


def _parse_extra(extra: str) -> dict[str, str]:
    """``search=foo&skip=0`` path segment into a dict."""
    params: dict[str, str] = {}
    for pair in extra.split("&"):
        key, _, value = pair.partition("=")
        if key and value:
            params[key] = value
    return params


def _public_url(request: Request, state: AppState) -> str:
    configured = state.config.addon.public_url
    return (configured or str(request.base_url)).rstrip("/")


async def _lookup_selection(state: AppState, stremio_id: str) -> ClassifiedItem | None:
    try:
        item = await state.selection_repo.get(stremio_id)
        if item is None and _base_id(stremio_id) != stremio_id:
            item = await state.selection_repo.get(_base_id(stremio_id))
    except Exception:
        log.warning("selection_lookup_failed", stremio_id=stremio_id, exc_info=True)
        return None
    return item


async def _remember_selections(state: AppState, items: list[ClassifiedItem]) -> None:
    try:
        for item in items:
            await state.selection_repo.save(item)
    except Exception:
        log.warning("selection_save_failed", items=len(items), exc_info=True)


# --- manifest ---


@router.get("/manifest.json")
async def manifest(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    return _respond(build_manifest(state.config.addon))


@router.get("/{user_config}/manifest.json")
async def configured_manifest(request: Request, user_config: str) -> JSONResponse:
    state = cast(AppState, request.app.state)
    short_name = None
    try:
        uc = decode_user_config(user_config)
        if uc.debrid_id in state.debrid_registry.supported_providers:
            short_name = state.debrid_registry.short_name(uc.debrid_id)
    except InvalidUserConfig:
        log.info("manifest_invalid_user_config")
    return _respond(build_manifest(state.config.addon, short_name))


# --- catalog ---


async def _catalog(
    request: Request,
    user_config: str | None,
    content_type: str,
    catalog_id: str,
    extra: dict[str, str],
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    mode = _CATALOG_MODES.get(catalog_id)
    ct = _content_type(content_type)
    query = extra.get("search") or request.query_params.get("search") or ""
    if mode is None or ct is None or not query:
        return _respond({"metas": []})

    try:
        uc = decode_user_config(user_config) if user_config else UserConfig()
    except InvalidUserConfig:
        log.info("catalog_invalid_user_config")
        return _respond({"metas": []})

    indexers = uc.indexers or state.config.jackett.default_indexers
    try:
        items = await state.catalog_search_uc.search_catalog(
            query,
            ct,
            indexers=indexers,
            mode=mode,
            qualities=uc.qualities,
        )
    except Exception:
        log.error(
            "catalog_failed",
            content_type=content_type,
            catalog_id=catalog_id,
            exc_info=True,
        )
        return _respond({"metas": []})

    await _remember_selections(state, items)
    return _respond({"metas": [meta_preview(i) for i in items]})


@router.get("/catalog/{content_type}/{catalog_id}/{extra}.json")
async def catalog_extra(
    request: Request, content_type: str, catalog_id: str, extra: str
) -> JSONResponse:
    return await _catalog(request, None, content_type, catalog_id, _parse_extra(extra))


@router.get("/catalog/{content_type}/{catalog_id}.json")
async def catalog(request: Request, content_type: str, catalog_id: str) -> JSONResponse:
    return await _catalog(request, None, content_type, catalog_id, {})


@router.get("/{user_config}/catalog/{content_type}/{catalog_id}/{extra}.json")
async def configured_catalog_extra(
    request: Request,
    user_config: str,
    content_type: str,
    catalog_id: str,
    extra: str,
) -> JSONResponse:
    return await _catalog(
        request, user_config, content_type, catalog_id, _parse_extra(extra)
    )


@router.get("/{user_config}/catalog/{content_type}/{catalog_id}.json")
async def configured_catalog(
    request: Request, user_config: str, content_type: str, catalog_id: str
) -> JSONResponse:
    return await _catalog(request, user_config, content_type, catalog_id, {})


# --- meta ---


async def _meta(request: Request, content_type: str, meta_id: str) -> JSONResponse:
    state = cast(AppState, request.app.state)
    item = await _lookup_selection(state, meta_id)
    if item is None:
        log.info("meta_not_found", meta_id=meta_id)
        return _respond({"meta": {"id": meta_id, "type": content_type, "name": meta_id}})
    return _respond({"meta": meta_detail(item)})


@router.get("/meta/{content_type}/{meta_id}.json")
async def meta(request: Request, content_type: str, meta_id: str) -> JSONResponse:
    return await _meta(request, content_type, meta_id)


@router.get("/{user_config}/meta/{content_type}/{meta_id}.json")
async def configured_meta(
    request: Request, user_config: str, content_type: str, meta_id: str
) -> JSONResponse:
    return await _meta(request, content_type, meta_id)


# --- stream ---


@router.get("/stream/{content_type}/{stream_id}.json")
async def unconfigured_stream(
    request: Request, content_type: str, stream_id: str
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    return _respond({"streams": [configure_stream(state.config.addon.addon_name)]})


@router.get("/{user_config}/stream/{content_type}/{stream_id}.json")
async def stream(
    request: Request, user_config: str, content_type: str, stream_id: str
) -> JSONResponse:
    state = cast(AppState, request.app.state)
    addon_name = state.config.addon.addon_name
    try:
        uc = decode_user_config(user_config)
    except InvalidUserConfig:
        log.info("stream_invalid_user_config")
        return _respond({"streams": []})

    if uc.debrid_id not in state.debrid_registry.supported_providers:
        return _respond({"streams": [configure_stream(addon_name)]})

    item = await _lookup_selection(state, stream_id)
    if item is None:
        log.info("stream_selection_not_found", stream_id=stream_id)
        return _respond({"streams": []})

    entry = build_stream(
        item,
        addon_name=addon_name,
        short_name=state.debrid_registry.short_name(uc.debrid_id),
        public_url=_public_url(request, state),
        user_config=user_config,
        stremio_id=stream_id,
    )
    return _respond({"streams": [entry]})


# --- download ---


def _fallback(kind: str | None) -> Response:
    return RedirectResponse(fallback_video_path(kind), status_code=302)


async def _download(
    request: Request,
    user_config: str,
    content_type: str,
    stremio_id: str,
    torrent_id: str,
    name: str = "",
) -> Response:
    state = cast(AppState, request.app.state)
    try:
        uc = decode_user_config(user_config)
    except InvalidUserConfig:
        log.info("download_invalid_user_config", stremio_id=stremio_id)
        return _fallback(None)

    item = await _lookup_selection(state, stremio_id)
    if item is not None and item.torrent.torrent_id != torrent_id:
        # selection was replaced by a later search; the stored record stands
        log.info(
            "download_selection_mismatch",
            stremio_id=stremio_id,
            torrent_id=torrent_id,
            selected_torrent_id=item.torrent.torrent_id,
        )
        item = None
    if item is not None:
        try:
            await state.resolve_download_uc.remember(item)
        except (OSError, ValueError):
            log.warning(
                "torrent_info_store_failed",
                stremio_id=stremio_id,
                torrent_id=torrent_id,
                exc_info=True,
            )

    try:
        url = await state.resolve_download_uc.resolve_download(
            uc,
            cast(ContentType, content_type),
            stremio_id,
            torrent_id,
            file_name=name,
        )
    except TorrentInfoNotFound:
        log.info("download_torrent_info_not_found", torrent_id=torrent_id)
        return PlainTextResponse(TORRENT_META_NOT_FOUND, status_code=404)
    except DebridError as e:
        kind = e.kind.value if e.kind else None
        log.warning(
            "download_debrid_error",
            stremio_id=stremio_id,
            torrent_id=torrent_id,
            kind=kind,
            error=str(e),
        )
        return _fallback(kind)
    except UnknownDebridProvider:
        log.info("download_unknown_provider", debrid_id=uc.debrid_id)
        return _fallback(None)
    except Exception:
        log.error(
            "download_failed",
            stremio_id=stremio_id,
            torrent_id=torrent_id,
            exc_info=True,
        )
        return _fallback(None)

    log.info("download_redirect", stremio_id=stremio_id, location=mask_url(url))
    return RedirectResponse(url, status_code=302)


@router.api_route(
    "/{user_config}/download/{content_type}/{stremio_id}/{torrent_id}/{name:path}",
    methods=["GET", "HEAD"],
)
async def download_named(
    request: Request,
    user_config: str,
    content_type: str,
    stremio_id: str,
    torrent_id: str,
    name: str,
) -> Response:
    return await _download(
        request, user_config, content_type, stremio_id, torrent_id, name
    )


@router.api_route(
    "/{user_config}/download/{content_type}/{stremio_id}/{torrent_id}",
    methods=["GET", "HEAD"],
)
async def download(
    request: Request,
    user_config: str,
    content_type: str,
    stremio_id: str,
    torrent_id: str,
) -> Response:
    return await _download(request, user_config, content_type, stremio_id, torrent_id)
