"""Idempotent setup of the Chargebee -> Hookdeck -> app routing topology.

One run, top to bottom, every call awaited before the next:

1. upsert the Hookdeck source (gives us its id and public URL)
2. upsert the customer, subscription and payment connections bound to it
3. list Chargebee webhook endpoints, then update ours or create it

Nothing is stored locally. Stable names (see resources.py) are the only
correlation between runs, so recovering from a failed run means running it
again. Two runs racing on step 3 can both miss the endpoint and both create
one; serialize invocations outside this process if that matters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional

from .chargebee import ChargebeeClient
from .config import ProvisioningConfig
from .errors import HttpRequestError, MalformedResponseError
from .filters import partition_violations
from .hookdeck import HookdeckClient
from .resources import (
    ALL_WEBHOOK_EVENTS,
    CHARGEBEE_ENDPOINT_NAME,
    DESTINATION_PATHS,
    PROJECT_CONNECTION_NAMES,
    PROJECT_DESTINATION_NAMES,
    PROJECT_SOURCE_NAME,
    ROLES,
    SOURCE_TYPE,
    ConnectionSpec,
    DestinationSpec,
    FilterRule,
    Source,
    SourceSpec,
    WebhookEndpoint,
)

logger = logging.getLogger(__name__)

# One body filter per role; mutually exclusive over ALL_WEBHOOK_EVENTS.
CONNECTION_RULES: Dict[str, FilterRule] = {
    "customer": FilterRule("event_type", "$startsWith", "customer_"),
    "subscription": FilterRule("event_type", "$startsWith", "subscription_"),
    "payment": FilterRule("event_type", "$eq", "payment_succeeded"),
}


@dataclass
class EndpointResult:
    action: Literal["created", "updated"]
    endpoint_id: str


@dataclass
class ReconcileResult:
    source: Source
    connections: List[Dict[str, Any]]
    endpoint: EndpointResult


class Reconciler:
    def __init__(self, config: ProvisioningConfig, hookdeck: HookdeckClient, chargebee: ChargebeeClient) -> None:
        self.config = config
        self.hookdeck = hookdeck
        self.chargebee = chargebee

    @property
    def mode(self) -> str:
        return self.config.mode

    def build_source(self) -> SourceSpec:
        return SourceSpec(
            name=PROJECT_SOURCE_NAME,
            type=SOURCE_TYPE,
            username=self.config.webhook_username,
            password=self.config.webhook_password,
        )

    def build_destination(self, role: str) -> DestinationSpec:
        return DestinationSpec(
            name=PROJECT_DESTINATION_NAMES[role],
            mode=self.config.mode,
            path=DESTINATION_PATHS[role],
            base_url=self.config.prod_destination_url if self.config.mode == "prod" else None,
        )

    def build_connections(self, source_id: str) -> List[ConnectionSpec]:
        return [
            ConnectionSpec(
                name=PROJECT_CONNECTION_NAMES[role],
                source_id=source_id,
                destination=self.build_destination(role),
                rules=[CONNECTION_RULES[role]],
            )
            for role in ROLES
        ]

    def plan(self, source_id: str = "<source id>") -> Dict[str, Any]:
        """Desired state without touching either API (secrets masked)."""
        connections = self.build_connections(source_id)
        return {
            "mode": self.mode,
            "source": self.build_source().to_payload(mask_secrets=True),
            "connections": [c.to_payload() for c in connections],
            "chargebee_endpoint": {
                "name": CHARGEBEE_ENDPOINT_NAME,
                "url": "<source url>",
                "enabled_events": list(ALL_WEBHOOK_EVENTS),
            },
            "unrouted_or_overlapping_events": partition_violations(ALL_WEBHOOK_EVENTS, connections),
        }

    async def setup_hookdeck_connections(self) -> tuple[Source, List[Dict[str, Any]]]:
        logger.info("Setting up Hookdeck Event Gateway connections in %s mode", self.mode.upper())

        # upsert_source raises before returning a source without a URL.
        source = await self.hookdeck.upsert_source(self.build_source())
        logger.info("Hookdeck Source URL: %s", source.url)
        logger.info("Hookdeck Source ID: %s", source.id)

        created: List[Dict[str, Any]] = []
        for connection in self.build_connections(source.id):
            created.append(await self.hookdeck.upsert_connection(connection))
        logger.info("Hookdeck connections created successfully")
        return source, created

    async def _existing_endpoints(self) -> List[WebhookEndpoint]:
        logger.info("Fetching existing Chargebee webhook endpoints...")
        endpoints: List[WebhookEndpoint] = []
        try:
            async for endpoint in self.chargebee.iter_webhook_endpoints():
                endpoints.append(endpoint)
        except (HttpRequestError, MalformedResponseError) as exc:
            # Fail open, but keep pages already read so a match on them is still updated.
            if endpoints:
                logger.warning(
                    "Failed to fetch all webhook endpoints, continuing with the %d already listed: %s",
                    len(endpoints),
                    exc,
                )
            else:
                logger.warning("Failed to fetch webhook endpoints: %s", exc)
        return endpoints

    async def setup_chargebee_webhook(self, source_url: str) -> EndpointResult:
        logger.info("Setting up Chargebee webhook in %s mode", self.mode.upper())
        cfg = self.config

        endpoints = await self._existing_endpoints()
        matches = [e for e in endpoints if e.name == CHARGEBEE_ENDPOINT_NAME]
        if len(matches) > 1:
            logger.warning(
                "Found %d webhook endpoints named %r; updating %s and leaving %s untouched",
                len(matches),
                CHARGEBEE_ENDPOINT_NAME,
                matches[0].id,
                ", ".join(e.id for e in matches[1:]),
            )

        existing: Optional[WebhookEndpoint] = matches[0] if matches else None
        if existing is not None:
            logger.info("Webhook endpoint already exists. Updating %s", existing.id)
            updated = await self.chargebee.update_webhook_endpoint(
                existing.id,
                source_url,
                cfg.webhook_username,
                cfg.webhook_password,
                ALL_WEBHOOK_EVENTS,
            )
            logger.info("Chargebee webhook updated successfully")
            return EndpointResult(action="updated", endpoint_id=updated.id or existing.id)

        logger.info("Creating Chargebee webhook endpoint...")
        created = await self.chargebee.create_webhook_endpoint(
            CHARGEBEE_ENDPOINT_NAME,
            source_url,
            cfg.webhook_username,
            cfg.webhook_password,
            ALL_WEBHOOK_EVENTS,
        )
        logger.info("Chargebee webhook created successfully")
        return EndpointResult(action="created", endpoint_id=created.id)

    async def run(self) -> ReconcileResult:
        source, connections = await self.setup_hookdeck_connections()
        endpoint = await self.setup_chargebee_webhook(source.url)
        return ReconcileResult(source=source, connections=connections, endpoint=endpoint)
