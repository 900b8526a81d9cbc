"""Chargebee webhook ingress (downstream of the Hookdeck connections)."""

from .runtime import WebhookRuntime
from .router import create_webhook_router

__all__ = [
    "WebhookRuntime",
    "create_webhook_router",
]
