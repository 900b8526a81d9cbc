from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, Iterable, Optional

import httpx

from .errors import MalformedResponseError
from .http import make_http_request
from .resources import CHARGEBEE_API_VERSION, WebhookEndpoint

logger = logging.getLogger(__name__)

LIST_PAGE_LIMIT = 100


def chargebee_api_base(site: str) -> str:
    return f"https://{site}.chargebee.com/api/v2"


class ChargebeeClient:
    """Webhook-endpoint calls against the Chargebee v2 API.

    Chargebee authenticates with HTTP Basic (API key as username, empty
    password) and takes form bodies with indexed arrays (enabled_events[0]=...).
    """

    def __init__(self, site: str, api_key: str, http: httpx.AsyncClient, base_url: Optional[str] = None) -> None:
        self._auth = (api_key, "")
        self._http = http
        self._base = (base_url or chargebee_api_base(site)).rstrip("/")

    async def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None, params=None) -> Any:
        return await make_http_request(
            self._http,
            f"{self._base}{path}",
            method,
            body=body,
            content_type="form",
            array_style="indexed",
            auth=self._auth,
            params=params,
        )

    async def iter_webhook_endpoints(self) -> AsyncIterator[WebhookEndpoint]:
        """Yield endpoints page by page, following next_offset until exhausted."""
        params: Dict[str, Any] = {"limit": LIST_PAGE_LIMIT}
        while True:
            resp = await self._request("GET", "/webhook_endpoints", params=params)
            items = resp.get("list") if isinstance(resp, dict) else None
            if not isinstance(items, list):
                raise MalformedResponseError("Unexpected webhook endpoint list response", resp)
            for item in items:
                data = item.get("webhook_endpoint") if isinstance(item, dict) else None
                if not isinstance(data, dict):
                    raise MalformedResponseError("Webhook endpoint list item missing webhook_endpoint", item)
                yield WebhookEndpoint.from_api(data)
            next_offset = resp.get("next_offset")
            if not next_offset:
                return
            params = {"limit": LIST_PAGE_LIMIT, "offset": next_offset}

    @staticmethod
    def _endpoint_body(url: str, username: str, password: str, events: Iterable[str]) -> Dict[str, Any]:
        return {
            "url": url,
            "api_version": CHARGEBEE_API_VERSION,
            "basic_auth_username": username,
            "basic_auth_password": password,
            "enabled_events": list(events),
        }

    async def create_webhook_endpoint(
        self, name: str, url: str, username: str, password: str, events: Iterable[str]
    ) -> WebhookEndpoint:
        body = {"name": name, **self._endpoint_body(url, username, password, events)}
        resp = await self._request("POST", "/webhook_endpoints", body)
        return self._unwrap(resp)

    async def update_webhook_endpoint(
        self, endpoint_id: str, url: str, username: str, password: str, events: Iterable[str]
    ) -> WebhookEndpoint:
        body = self._endpoint_body(url, username, password, events)
        resp = await self._request("POST", f"/webhook_endpoints/{endpoint_id}", body)
        return self._unwrap(resp)

    @staticmethod
    def _unwrap(resp: Any) -> WebhookEndpoint:
        data = resp.get("webhook_endpoint") if isinstance(resp, dict) else None
        if not isinstance(data, dict):
            raise MalformedResponseError("Webhook endpoint response missing webhook_endpoint", resp)
        return WebhookEndpoint.from_api(data)
