from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from ..observability.context import reset_event_id, set_event_id
from .handlers import handle_customer_event, handle_payment_event, handle_subscription_event
from .runtime import WebhookRuntime
from .signature import verify_basic_auth, verify_hookdeck_signature

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], Dict[str, Any]]


def _authorized(rt: WebhookRuntime, request: Request, body: bytes) -> bool:
    mode = rt.auth_mode()
    if mode == "hookdeck_signature":
        ok, debug = verify_hookdeck_signature(
            rt.signing_secret,
            body,
            request.headers.get("x-hookdeck-signature"),
            request.headers.get("x-hookdeck-signature-2"),
        )
        if not ok:
            logger.warning("Invalid Hookdeck signature: %s", debug)
        return ok
    if mode == "basic_auth":
        ok = verify_basic_auth(
            request.headers.get("authorization"), rt.basic_auth_username, rt.basic_auth_password
        )
        if not ok:
            logger.warning("Invalid webhook Basic Auth credentials")
        return ok
    return True


def create_webhook_router(rt: WebhookRuntime) -> APIRouter:
    router = APIRouter(prefix="/webhooks/chargebee")

    async def _dispatch(request: Request, handler: Handler, label: str):
        body_bytes = await request.body()
        if not _authorized(rt, request, body_bytes):
            return PlainTextResponse("Unauthorized", status_code=401)

        try:
            data = json.loads(body_bytes.decode("utf-8") or "{}")
        except (UnicodeDecodeError, ValueError):
            return PlainTextResponse("Bad Request", status_code=400)
        if not isinstance(data, dict):
            return PlainTextResponse("Bad Request", status_code=400)

        rt.vlog(f"Incoming {label} webhook payload:\n{json.dumps(data, indent=2)}")

        tok = set_event_id(data.get("id"))
        try:
            return handler(data)
        except Exception as exc:
            logger.exception("Error processing %s webhook", label)
            return JSONResponse(
                {"error": "Internal server error", "message": str(exc) or "Unknown error"},
                status_code=500,
            )
        finally:
            reset_event_id(tok)

    @router.post("/customer")
    async def customer_webhook(request: Request):
        """Customer lifecycle events (customer_*)."""
        return await _dispatch(request, handle_customer_event, "customer")

    @router.post("/subscription")
    async def subscription_webhook(request: Request):
        """Subscription lifecycle events (subscription_*)."""
        return await _dispatch(request, handle_subscription_event, "subscription")

    @router.post("/payments")
    async def payments_webhook(request: Request):
        """payment_succeeded events."""
        return await _dispatch(request, handle_payment_event, "payment")

    return router
