from __future__ import annotations

import logging
from typing import Callable, Optional

LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s "
    "request_id=%(request_id)s event_id=%(event_id)s "
    "%(message)s"
)


class _ContextFilter(logging.Filter):
    def __init__(
        self,
        *,
        request_id_getter: Optional[Callable[[], Optional[str]]] = None,
        event_id_getter: Optional[Callable[[], Optional[str]]] = None,
    ) -> None:
        super().__init__()
        self._request_id_getter = request_id_getter
        self._event_id_getter = event_id_getter

    def filter(self, record: logging.LogRecord) -> bool:
        # Inject defaults so formatters can always reference these fields.
        record.request_id = None
        record.event_id = None
        if self._request_id_getter:
            record.request_id = self._request_id_getter()
        if self._event_id_getter:
            record.event_id = self._event_id_getter()
        return True


def configure_logging(
    *,
    level: str = "INFO",
    request_id_getter: Optional[Callable[[], Optional[str]]] = None,
    event_id_getter: Optional[Callable[[], Optional[str]]] = None,
) -> None:
    """Configure root logging with the request/event context fields.

    Shared by the webhook app and the provisioning CLI.
    """
    lvl = getattr(logging, (level or "INFO").upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(lvl)

    # If something already configured handlers (uvicorn, pytest), avoid duplicating them.
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(lvl)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
        root.addHandler(handler)

    # Filters on the root logger only see records logged on it directly, so attach to handlers too.
    ctx_filter = _ContextFilter(
        request_id_getter=request_id_getter,
        event_id_getter=event_id_getter,
    )
    for h in root.handlers:
        if not any(isinstance(f, _ContextFilter) for f in h.filters):
            h.addFilter(ctx_filter)
