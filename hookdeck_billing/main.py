import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse

from .observability.context import (
    get_event_id as _get_event_id,
    get_request_id as _get_request_id,
    reset_request_id as _reset_request_id,
    set_request_id as _set_request_id,
)
from .observability.logging import configure_logging as _configure_logging
from .webhook import WebhookRuntime, create_webhook_router

# Load environment variables early so defaults below can be overridden by a local `.env`.
# On managed platforms the variables are injected directly and this is a no-op.
load_dotenv()

PORT = int(os.getenv("PORT", "8080"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_VERBOSE = os.getenv("LOG_VERBOSE", "0") == "1"
# Signing secret from the Hookdeck project settings; deliveries are rejected without a valid signature.
HOOKDECK_SIGNING_SECRET = (os.getenv("HOOKDECK_SIGNING_SECRET", "") or "").strip()
# Used only when no signing secret is set (Chargebee posting straight to the app).
CHARGEBEE_WEBHOOK_USERNAME = (os.getenv("CHARGEBEE_WEBHOOK_USERNAME", "") or "").strip()
CHARGEBEE_WEBHOOK_PASSWORD = (os.getenv("CHARGEBEE_WEBHOOK_PASSWORD", "") or "").strip()

_configure_logging(
    level=LOG_LEVEL,
    request_id_getter=_get_request_id,
    event_id_getter=_get_event_id,
)
log = logging.getLogger(__name__)


def vlog(message: str) -> None:
    if LOG_VERBOSE:
        log.info(message)


webhook_runtime = WebhookRuntime(
    signing_secret=HOOKDECK_SIGNING_SECRET,
    basic_auth_username=CHARGEBEE_WEBHOOK_USERNAME,
    basic_auth_password=CHARGEBEE_WEBHOOK_PASSWORD,
    vlog=vlog,
)
log.info("Webhook auth mode: %s", webhook_runtime.auth_mode())

app = FastAPI(title="Chargebee webhook handlers")
app.include_router(create_webhook_router(webhook_runtime))


# ── Request context: request_id (for tracing) ──────────────────────
@app.middleware("http")
async def request_id_middleware(request: StarletteRequest, call_next):
    incoming = (request.headers.get("x-request-id") or "").strip()
    rid, tok = _set_request_id(incoming or None)
    try:
        resp: StarletteResponse = await call_next(request)
        resp.headers["X-Request-Id"] = rid
        return resp
    finally:
        _reset_request_id(tok)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("hookdeck_billing.main:app", host="0.0.0.0", port=PORT, reload=False)
