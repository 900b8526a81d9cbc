from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import DEFAULT_HOOKDECK_API_BASE
from .errors import MalformedResponseError
from .http import bearer_headers, make_http_request
from .resources import ConnectionSpec, Source, SourceSpec

logger = logging.getLogger(__name__)

LIST_PAGE_LIMIT = 250


class HookdeckClient:
    """Thin wrapper over the Hookdeck Event Gateway REST API (bearer auth, JSON bodies)."""

    def __init__(self, api_key: str, http: httpx.AsyncClient, base_url: str = DEFAULT_HOOKDECK_API_BASE) -> None:
        self._headers = bearer_headers(api_key)
        self._http = http
        self._base = base_url.rstrip("/")

    async def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None, params=None) -> Any:
        return await make_http_request(
            self._http, f"{self._base}{path}", method, self._headers, body, params=params
        )

    async def upsert_source(self, source: SourceSpec) -> Source:
        logger.info("Upserting source: %s", source.name)
        resp = await self._request("PUT", "/sources", source.to_payload())
        if not isinstance(resp, dict) or not resp.get("url"):
            raise MalformedResponseError("Source response missing URL", resp)
        if not resp.get("id"):
            raise MalformedResponseError("Source response missing id", resp)
        return Source(id=str(resp["id"]), name=str(resp.get("name") or source.name), url=str(resp["url"]))

    async def upsert_connection(self, connection: ConnectionSpec) -> Dict[str, Any]:
        logger.info("Upserting connection: %s", connection.name)
        return await self._request("PUT", "/connections", connection.to_payload())

    async def _list_all(self, path: str) -> List[Dict[str, Any]]:
        models: List[Dict[str, Any]] = []
        params: Dict[str, Any] = {"limit": LIST_PAGE_LIMIT}
        while True:
            resp = await self._request("GET", path, params=params)
            page = resp.get("models") if isinstance(resp, dict) else None
            if not isinstance(page, list):
                raise MalformedResponseError(f"Unexpected list response from {path}", resp)
            models.extend(page)
            next_cursor = (resp.get("pagination") or {}).get("next")
            if not next_cursor:
                return models
            params = {"limit": LIST_PAGE_LIMIT, "next": next_cursor}

    async def list_connections(self) -> List[Dict[str, Any]]:
        logger.info("Fetching all Hookdeck connections...")
        return await self._list_all("/connections")

    async def list_sources(self) -> List[Dict[str, Any]]:
        logger.info("Fetching all Hookdeck sources...")
        return await self._list_all("/sources")

    async def list_destinations(self) -> List[Dict[str, Any]]:
        logger.info("Fetching all Hookdeck destinations...")
        return await self._list_all("/destinations")

    async def delete_connection(self, connection_id: str) -> None:
        await self._request("DELETE", f"/connections/{connection_id}")

    async def delete_source(self, source_id: str) -> None:
        await self._request("DELETE", f"/sources/{source_id}")

    async def delete_destination(self, destination_id: str) -> None:
        await self._request("DELETE", f"/destinations/{destination_id}")
