from __future__ import annotations

import json
from typing import Any, Optional


class ProvisioningError(RuntimeError):
    """Fatal error while talking to Hookdeck or Chargebee."""


class HttpRequestError(ProvisioningError):
    def __init__(
        self,
        method: str,
        url: str,
        status_code: Optional[int],
        body: Any = None,
        message: Optional[str] = None,
    ) -> None:
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body
        if message is None:
            message = f"HTTP {status_code}: {_render_body(body)}"
        super().__init__(f"{method} {url} failed: {message}")


class MalformedResponseError(ProvisioningError):
    """The remote API accepted the request but the response is missing a field we need."""

    def __init__(self, message: str, response: Any = None) -> None:
        self.response = response
        super().__init__(f"{message}. Response: {_render_body(response)}")


def _render_body(body: Any) -> str:
    if isinstance(body, (dict, list)):
        try:
            return json.dumps(body, ensure_ascii=False)[:2000]
        except (TypeError, ValueError):
            return str(body)[:2000]
    return str(body or "")[:2000]
