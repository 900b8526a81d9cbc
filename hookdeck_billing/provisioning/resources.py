"""Naming table, event lists and request descriptors for the Hookdeck/Chargebee topology.

Stable names are the only thing correlating one provisioning run with the
next: every upsert is keyed by them, so re-running converges instead of
duplicating.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

Mode = Literal["dev", "prod"]
MODES = ("dev", "prod")

# Processing order for connections (customer -> subscription -> payment).
ROLES = ("customer", "subscription", "payment")

PROJECT_SOURCE_NAME = "chargebee"
SOURCE_TYPE = "CHARGEBEE_BILLING"

PROJECT_CONNECTION_NAMES: Dict[str, str] = {
    "customer": "chargebee-customer",
    "subscription": "chargebee-subscription",
    "payment": "chargebee-payment",
}

PROJECT_DESTINATION_NAMES: Dict[str, str] = {
    "customer": "chargebee-customer-handler",
    "subscription": "chargebee-subscription-handler",
    "payment": "chargebee-payment-handler",
}

DESTINATION_PATHS: Dict[str, str] = {
    "customer": "/webhooks/chargebee/customer",
    "subscription": "/webhooks/chargebee/subscription",
    "payment": "/webhooks/chargebee/payments",
}

CHARGEBEE_ENDPOINT_NAME = "Hookdeck Webhook Endpoint"
CHARGEBEE_API_VERSION = "v2"

# Full subscription sent to Chargebee on every run.
ALL_WEBHOOK_EVENTS = (
    # Customer events
    "customer_created",
    "customer_changed",
    "customer_deleted",
    "customer_moved_in",
    "customer_moved_out",
    # Subscription events
    "subscription_created",
    "subscription_started",
    "subscription_activated",
    "subscription_changed",
    "subscription_cancelled",
    "subscription_reactivated",
    "subscription_renewed",
    "subscription_scheduled_cancellation_removed",
    "subscription_changes_scheduled",
    "subscription_scheduled_changes_removed",
    "subscription_shipping_address_updated",
    "subscription_deleted",
    "subscription_resumed",
    "subscription_paused",
    # Payment events
    "payment_succeeded",
)


def _masked(value: str) -> str:
    return "*" * min(len(value or ""), 8)


@dataclass(frozen=True)
class SourceSpec:
    name: str
    type: str
    username: str
    password: str

    def __post_init__(self) -> None:
        if not self.username or not self.password:
            raise ValueError(f"Source '{self.name}' requires non-empty auth credentials")

    def to_payload(self, *, mask_secrets: bool = False) -> Dict[str, Any]:
        password = _masked(self.password) if mask_secrets else self.password
        return {
            "name": self.name,
            "type": self.type,
            "config": {"auth": {"username": self.username, "password": password}},
        }


@dataclass(frozen=True)
class DestinationSpec:
    """Either a CLI (tunnel) path in dev or a public HTTP URL in prod, never both."""

    name: str
    mode: Mode
    path: str
    base_url: Optional[str] = None

    def __post_init__(self) -> None:
        if self.mode not in MODES:
            raise ValueError(f"Unknown mode: {self.mode!r}")
        if self.mode == "prod" and not self.base_url:
            raise ValueError(f"Destination '{self.name}' needs a base URL in prod mode")

    @property
    def type(self) -> str:
        return "CLI" if self.mode == "dev" else "HTTP"

    @property
    def url(self) -> Optional[str]:
        if self.mode == "dev":
            return None
        return f"{(self.base_url or '').rstrip('/')}{self.path}"

    def to_payload(self) -> Dict[str, Any]:
        config = {"path": self.path} if self.mode == "dev" else {"url": self.url}
        return {"name": self.name, "type": self.type, "config": config}


@dataclass(frozen=True)
class FilterRule:
    field: str
    operator: str
    value: str

    def to_payload(self) -> Dict[str, Any]:
        return {"type": "filter", "body": {self.field: {self.operator: self.value}}}


@dataclass(frozen=True)
class ConnectionSpec:
    name: str
    source_id: str
    destination: DestinationSpec
    rules: List[FilterRule] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "source_id": self.source_id,
            "destination": self.destination.to_payload(),
            "rules": [r.to_payload() for r in self.rules],
        }


@dataclass
class Source:
    id: str
    name: str
    url: str


@dataclass
class WebhookEndpoint:
    id: str
    name: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "WebhookEndpoint":
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
        )
