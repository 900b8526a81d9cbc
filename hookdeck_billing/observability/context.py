from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Optional
import uuid

# NOTE: request_id is scoped to one inbound HTTP request; event_id to one Chargebee event
# while its handler runs. The provisioning CLI leaves both empty.
_REQUEST_ID: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
_EVENT_ID: ContextVar[Optional[str]] = ContextVar("event_id", default=None)


def get_request_id() -> Optional[str]:
    return _REQUEST_ID.get()


def set_request_id(value: Optional[str] = None) -> tuple[str, Token[Optional[str]]]:
    rid = (value or "").strip() or uuid.uuid4().hex
    tok = _REQUEST_ID.set(rid)
    return rid, tok


def reset_request_id(token: Token[Optional[str]]) -> None:
    _REQUEST_ID.reset(token)


def get_event_id() -> Optional[str]:
    return _EVENT_ID.get()


def set_event_id(value: Optional[str]) -> Token[Optional[str]]:
    v = str(value).strip() if value is not None else None
    return _EVENT_ID.set(v or None)


def reset_event_id(token: Token[Optional[str]]) -> None:
    _EVENT_ID.reset(token)
