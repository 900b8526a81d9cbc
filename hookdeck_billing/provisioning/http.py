from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

import httpx

from .errors import HttpRequestError

logger = logging.getLogger(__name__)

ContentType = Literal["json", "form"]
ArrayStyle = Literal["brackets", "indexed"]


def bearer_headers(api_key: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {api_key}"}


def _form_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def flatten_form(body: Mapping[str, Any], array_style: ArrayStyle = "brackets") -> List[Tuple[str, str]]:
    """Flatten a nested mapping into form fields.

    {"a": {"b": 1}, "c": ["x", "y"]} becomes a[b]=1, c[]=x, c[]=y
    (or c[0]=x, c[1]=y with array_style="indexed"). None values are dropped.
    """
    out: List[Tuple[str, str]] = []

    def _walk(obj: Mapping[str, Any], prefix: str) -> None:
        for key, value in obj.items():
            form_key = f"{prefix}[{key}]" if prefix else str(key)
            if value is None:
                continue
            if isinstance(value, Mapping):
                _walk(value, form_key)
            elif isinstance(value, (list, tuple)):
                for i, item in enumerate(value):
                    suffix = f"[{i}]" if array_style == "indexed" else "[]"
                    out.append((f"{form_key}{suffix}", _form_scalar(item)))
            else:
                out.append((form_key, _form_scalar(value)))

    _walk(body, "")
    return out


def _decode(resp: httpx.Response) -> Any:
    if not resp.content:
        return {}
    try:
        return resp.json()
    except ValueError:
        return resp.text


async def make_http_request(
    client: httpx.AsyncClient,
    url: str,
    method: str,
    headers: Optional[Mapping[str, str]] = None,
    body: Optional[Mapping[str, Any]] = None,
    *,
    content_type: ContentType = "json",
    array_style: ArrayStyle = "brackets",
    auth: Optional[Tuple[str, str]] = None,
    params: Optional[Mapping[str, Any]] = None,
) -> Any:
    """Send one request and return the decoded JSON body.

    Raises HttpRequestError on a non-2xx status or a transport failure.
    """
    hdrs = dict(headers or {})
    kwargs: Dict[str, Any] = {}
    if body is not None:
        if content_type == "form":
            kwargs["content"] = str(httpx.QueryParams(flatten_form(body, array_style)))
            hdrs["Content-Type"] = "application/x-www-form-urlencoded"
        else:
            kwargs["content"] = json.dumps(body)
            hdrs["Content-Type"] = "application/json"
    if auth is not None:
        kwargs["auth"] = auth
    if params:
        kwargs["params"] = dict(params)

    logger.debug("%s %s", method, url)
    try:
        resp = await client.request(method, url, headers=hdrs, **kwargs)
    except httpx.RequestError as exc:
        raise HttpRequestError(method, url, None, message=f"request failed: {exc}") from exc

    data = _decode(resp)
    if resp.status_code < 200 or resp.status_code >= 300:
        raise HttpRequestError(method, url, resp.status_code, data)
    return data
