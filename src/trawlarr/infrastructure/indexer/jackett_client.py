"""Jackett indexer client.

Calls ``GET {jackett}/api/v2.0/indexers/{indexer}/results?Query=...`` and
hands back ``RawResult`` records tagged with the response encoding:
Jackett answers with a JSON ``Results`` list, Torznab-style proxies and
some Jackett builds answer with an RSS feed. The branch is taken on the
response ``Content-Type``; only a missing/unhelpful header falls back to
looking at the first byte of the body.
"""

from __future__ import annotations

from typing import Any
from xml.etree import ElementTree as ET

import httpx
import structlog

from trawlarr.domain.entities.errors import IndexerError
from trawlarr.domain.entities.torrent import RawResult

log = structlog.get_logger(__name__)

# Namespace URI -> prefix used in element keys ("torznab:attr").
_NAMESPACES = {
    "http://torznab.com/schemas/2015/feed": "torznab",
    "http://www.w3.org/2005/Atom": "atom",
}


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        uri, _, local = tag[1:].partition("}")
        prefix = _NAMESPACES.get(uri)
        return f"{prefix}:{local}" if prefix else local
    return tag


def element_to_dict(elem: ET.Element) -> Any:
    """xml2js-style conversion: attributes under ``"$"``, text under ``"_"``.

    Leaf elements without attributes collapse to their text. Repeated
    child tags become lists.
    """
    children = list(elem)
    text = (elem.text or "").strip()
    if not children and not elem.attrib:
        return text
    node: dict[str, Any] = {}
    if elem.attrib:
        node["$"] = {_local_name(k): v for k, v in elem.attrib.items()}
    if text:
        node["_"] = text
    for child in children:
        key = _local_name(child.tag)
        value = element_to_dict(child)
        if key in node:
            existing = node[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[key] = [existing, value]
        else:
            node[key] = value
    return node


def parse_torznab_feed(body: bytes | str) -> list[dict[str, Any]]:
    """Return every ``rss/channel/item`` as an xml2js-style dict.

    Raises:
        ET.ParseError: Malformed XML.
    """
    root = ET.fromstring(body)
    channel = root.find("channel")
    if channel is None:
        return []
    items = (element_to_dict(item) for item in channel.findall("item"))
    return [item for item in items if isinstance(item, dict)]


def parse_json_results(data: Any) -> list[dict[str, Any]]:
    results = data.get("Results") if isinstance(data, dict) else None
    if results is None:
        return []
    if isinstance(results, dict):
        return [results]
    return [r for r in results if isinstance(r, dict)]


def _detect_shape(resp: httpx.Response) -> str:
    ctype = resp.headers.get("content-type", "").lower()
    if "json" in ctype:
        return "json"
    if "xml" in ctype or "rss" in ctype:
        return "torznab"
    return "torznab" if resp.content.lstrip()[:1] == b"<" else "json"


class JackettClient:
    """Searches one Jackett indexer (or the ``all`` aggregate) per call.

    Implements ``IndexerClientPort``. Timeouts are enforced by the caller
    (per-indexer ``asyncio.wait_for``); the shared client timeout is only a
    backstop.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    async def search(self, indexer: str, query: str) -> list[RawResult]:
        """Run ``query`` against ``indexer``.

        Raises:
            IndexerError: HTTP error status, transport error or unparseable body.
        """
        url = f"{self._base_url}/api/v2.0/indexers/{indexer}/results"
        params = {"apikey": self._api_key, "Query": query}

        try:
            resp = await self._http.get(url, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise IndexerError(
                indexer, f"HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise IndexerError(indexer, f"request failed: {exc!r}") from exc

        shape = _detect_shape(resp)
        try:
            if shape == "json":
                items = parse_json_results(resp.json())
            else:
                items = parse_torznab_feed(resp.content)
        except (ValueError, ET.ParseError) as exc:
            raise IndexerError(indexer, f"unparseable {shape} body") from exc

        log.debug(
            "jackett_search_done",
            indexer=indexer,
            query=query,
            shape=shape,
            result_count=len(items),
        )
        return [RawResult(shape=shape, fields=item) for item in items]
