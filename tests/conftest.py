import asyncio
import json
import os
from urllib.parse import parse_qsl, urlsplit

import httpx
import pytest

# Keep a developer's local .env from leaking into the tests.
for _name in (
    "HOOKDECK_SIGNING_SECRET",
    "CHARGEBEE_WEBHOOK_USERNAME",
    "CHARGEBEE_WEBHOOK_PASSWORD",
    "LOG_VERBOSE",
):
    os.environ.pop(_name, None)


FULL_ENV = {
    "HOOKDECK_API_KEY": "hk_test_key",
    "CHARGEBEE_SITE": "acme-test",
    "CHARGEBEE_API_KEY": "cb_test_key",
    "CHARGEBEE_WEBHOOK_USERNAME": "hook-user",
    "CHARGEBEE_WEBHOOK_PASSWORD": "hook-pass",
    "PROD_DESTINATION_URL": "https://app.example.com",
}


def _form_to_dict(raw: bytes) -> dict:
    """Fold indexed form arrays (enabled_events[0]=...) back into lists."""
    out: dict = {}
    for key, value in parse_qsl(raw.decode("utf-8"), keep_blank_values=True):
        if key.endswith("]") and "[" in key:
            base, _, _idx = key[:-1].partition("[")
            out.setdefault(base, []).append(value)
        else:
            out[key] = value
    return out


class FakeRemote:
    """In-memory Hookdeck + Chargebee behind an httpx.MockTransport, recording every call."""

    def __init__(self):
        self.calls = []
        self.sources = {}
        self.connections = {}
        self.destinations = {}
        self.endpoints = []
        self.failures = {}
        self.source_response = None
        # Raw body for GET /webhook_endpoints, bypassing the in-memory table.
        self.endpoint_list_response = None
        # When set, list calls return this many items per page plus a cursor.
        self.page_size = None
        self.page_failures = {}
        self._seq = 0

    def _next_id(self, prefix):
        self._seq += 1
        return f"{prefix}_{self._seq}"

    def fail(self, method, path, status=500, body=None):
        self.failures[(method, path)] = (status, body or {"message": "boom"})

    def fail_page(self, path, cursor, status=503):
        self.page_failures[(path, cursor)] = status

    def _page(self, items, cursor):
        start = int(cursor or 0)
        if self.page_size is None:
            return items, None
        end = start + self.page_size
        return items[start:end], (str(end) if end < len(items) else None)

    def calls_to(self, method, path):
        return [c for c in self.calls if c["method"] == method and c["path"] == path]

    def transport(self):
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = urlsplit(str(request.url))
        path = url.path
        if path.startswith("/2025-07-01"):
            path = path[len("/2025-07-01"):]
        elif path.startswith("/api/v2"):
            path = path[len("/api/v2"):]

        if request.headers.get("content-type", "").startswith("application/json"):
            body = json.loads(request.content or b"{}")
        elif request.content:
            body = _form_to_dict(request.content)
        else:
            body = None

        params = dict(parse_qsl(url.query))
        self.calls.append(
            {
                "method": request.method,
                "host": url.netloc,
                "path": path,
                "body": body,
                "headers": dict(request.headers),
                "params": params,
            }
        )

        if (request.method, path) in self.failures:
            status, payload = self.failures[(request.method, path)]
            return httpx.Response(status, json=payload)

        cursor = params.get("next") or params.get("offset")
        if request.method == "GET" and (path, cursor) in self.page_failures:
            return httpx.Response(self.page_failures[(path, cursor)], json={"message": "page unavailable"})

        return self._route(request.method, path, body, cursor)

    def _route(self, method, path, body, cursor=None):
        if method == "PUT" and path == "/sources":
            if self.source_response is not None:
                return httpx.Response(200, json=self.source_response)
            src = self.sources.get(body["name"])
            if src is None:
                sid = self._next_id("src")
                src = {"id": sid, "name": body["name"], "url": f"https://hkdk.events/{sid}"}
                self.sources[body["name"]] = src
            src["config"] = body.get("config")
            return httpx.Response(200, json=src)

        if method == "PUT" and path == "/connections":
            dest_body = body["destination"]
            dest = self.destinations.get(dest_body["name"])
            if dest is None:
                dest = {"id": self._next_id("des"), "name": dest_body["name"]}
                self.destinations[dest_body["name"]] = dest
            dest["config"] = dest_body.get("config")
            conn = self.connections.get(body["name"])
            if conn is None:
                conn = {"id": self._next_id("web"), "name": body["name"]}
                self.connections[body["name"]] = conn
            source = next((s for s in self.sources.values() if s["id"] == body["source_id"]), {})
            conn.update({"source": source, "destination": dest, "rules": body.get("rules")})
            return httpx.Response(200, json=conn)

        if method == "GET" and path in ("/sources", "/connections", "/destinations"):
            table = {"/sources": self.sources, "/connections": self.connections, "/destinations": self.destinations}[path]
            models, next_cursor = self._page(list(table.values()), cursor)
            pagination = {"next": next_cursor} if next_cursor else {}
            return httpx.Response(200, json={"models": models, "pagination": pagination})

        if method == "DELETE":
            kind, _, rid = path.strip("/").partition("/")
            table = {"sources": self.sources, "connections": self.connections, "destinations": self.destinations}[kind]
            for name, item in list(table.items()):
                if item["id"] == rid:
                    del table[name]
            return httpx.Response(200, json={"id": rid})

        if method == "GET" and path == "/webhook_endpoints":
            if self.endpoint_list_response is not None:
                return httpx.Response(200, json=self.endpoint_list_response)
            page, next_offset = self._page(self.endpoints, cursor)
            payload = {"list": [{"webhook_endpoint": e} for e in page]}
            if next_offset:
                payload["next_offset"] = next_offset
            return httpx.Response(200, json=payload)

        if method == "POST" and path == "/webhook_endpoints":
            ep = dict(body, id=self._next_id("whe"))
            self.endpoints.append(ep)
            return httpx.Response(200, json={"webhook_endpoint": ep})

        if method == "POST" and path.startswith("/webhook_endpoints/"):
            eid = path.rsplit("/", 1)[1]
            ep = next((e for e in self.endpoints if e["id"] == eid), None)
            if ep is None:
                return httpx.Response(404, json={"message": "not found"})
            ep.update(body)
            return httpx.Response(200, json={"webhook_endpoint": ep})

        return httpx.Response(404, json={"message": f"no route for {method} {path}"})


@pytest.fixture
def full_env(monkeypatch):
    for k, v in FULL_ENV.items():
        monkeypatch.setenv(k, v)
    for k in ("HOOKDECK_API_BASE", "CHARGEBEE_API_BASE", "PROVISIONING_HTTP_TIMEOUT_SECONDS"):
        monkeypatch.delenv(k, raising=False)
    return dict(FULL_ENV)


@pytest.fixture
def fake_remote():
    return FakeRemote()


@pytest.fixture
def reconcile(full_env, fake_remote):
    """Run one full reconciliation against the fake remote and return its result."""
    from hookdeck_billing.provisioning.chargebee import ChargebeeClient
    from hookdeck_billing.provisioning.config import ProvisioningConfig
    from hookdeck_billing.provisioning.hookdeck import HookdeckClient
    from hookdeck_billing.provisioning.reconciler import Reconciler

    def _run(mode="dev"):
        config = ProvisioningConfig.from_env(mode)

        async def _go():
            async with httpx.AsyncClient(transport=fake_remote.transport()) as http:
                reconciler = Reconciler(
                    config,
                    HookdeckClient(config.hookdeck_api_key, http),
                    ChargebeeClient(config.chargebee_site, config.chargebee_api_key, http),
                )
                return await reconciler.run()

        return asyncio.run(_go())

    return _run


@pytest.fixture
def hookdeck_client(fake_remote):
    """Factory running a coroutine with a HookdeckClient bound to the fake remote."""
    from hookdeck_billing.provisioning.hookdeck import HookdeckClient

    def _with_client(fn):
        async def _go():
            async with httpx.AsyncClient(transport=fake_remote.transport()) as http:
                return await fn(HookdeckClient("hk_test_key", http))

        return asyncio.run(_go())

    return _with_client
