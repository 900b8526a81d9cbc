"""Chargebee event handlers, one per Hookdeck connection.

Each connection filters on event_type, so a handler only sees its own
namespace. Payloads look like {id, event_type, content: {...}}. Handlers
log and acknowledge; business logic is left to the application.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

logger = logging.getLogger(__name__)

_RULE = "=" * 50


def _log_received(title: str, event_id: Any, event_type: Any) -> None:
    logger.info(_RULE)
    logger.info(title)
    logger.info("Event ID: %s", event_id)
    logger.info("Event Type: %s", event_type)
    logger.info("Timestamp: %s", datetime.now(timezone.utc).isoformat())
    logger.info(_RULE)


def _content(payload: Dict[str, Any]) -> Dict[str, Any]:
    content = payload.get("content")
    return content if isinstance(content, dict) else {}


def handle_customer_event(payload: Dict[str, Any]) -> Dict[str, Any]:
    event_id = payload.get("id")
    event_type = payload.get("event_type")
    _log_received("Customer Event Received", event_id, event_type)

    customer = _content(payload).get("customer")
    if not customer:
        logger.warning("No customer data in payload")
        return {"received": True, "warning": "No customer data"}

    if event_type == "customer_created":
        logger.info("New customer created: %s", customer.get("id"))
        logger.info("   Email: %s", customer.get("email"))
        logger.info("   Name: %s %s", customer.get("first_name"), customer.get("last_name"))
        # TODO: sync the customer into the CRM once one is wired in
    elif event_type == "customer_changed":
        logger.info("Customer updated: %s", customer.get("id"))
        logger.info("   Email: %s", customer.get("email"))
    else:
        logger.info("Unhandled customer event: %s", event_type)

    return {
        "received": True,
        "event_id": event_id,
        "event_type": event_type,
        "customer_id": customer.get("id"),
    }


def handle_subscription_event(payload: Dict[str, Any]) -> Dict[str, Any]:
    event_id = payload.get("id")
    event_type = payload.get("event_type")
    _log_received("Subscription Event Received", event_id, event_type)

    subscription = _content(payload).get("subscription") or {}

    if event_type == "subscription_created":
        logger.info("New subscription created: %s", subscription.get("id"))
        logger.info("   Customer ID: %s", subscription.get("customer_id"))
        logger.info("   Plan ID: %s", subscription.get("plan_id"))
        logger.info("   Status: %s", subscription.get("status"))
    elif event_type == "subscription_renewed":
        logger.info("Subscription renewed: %s", subscription.get("id"))
        logger.info("   Customer ID: %s", subscription.get("customer_id"))
        logger.info("   Next billing at: %s", subscription.get("next_billing_at"))
    elif event_type == "subscription_changed":
        logger.info("Subscription changed: %s", subscription.get("id"))
        logger.info("   Customer ID: %s", subscription.get("customer_id"))
        logger.info("   Plan ID: %s", subscription.get("plan_id"))
        logger.info("   Status: %s", subscription.get("status"))
    else:
        logger.info("Unhandled subscription event: %s", event_type)

    return {"received": True, "event_id": event_id, "event_type": event_type}


def handle_payment_event(payload: Dict[str, Any]) -> Dict[str, Any]:
    event_id = payload.get("id")
    event_type = payload.get("event_type")
    _log_received("Payment Event Received", event_id, event_type)

    transaction = _content(payload).get("transaction")
    if not transaction:
        logger.warning("No transaction data in payload")
        return {"received": True, "warning": "No transaction data"}

    if event_type == "payment_succeeded":
        amount = transaction.get("amount")
        logger.info("Payment succeeded: %s", transaction.get("id"))
        logger.info("   Customer ID: %s", transaction.get("customer_id"))
        # Chargebee amounts are in minor units.
        logger.info(
            "   Amount: %s %s",
            amount / 100 if isinstance(amount, (int, float)) else amount,
            transaction.get("currency_code"),
        )
        logger.info("   Subscription ID: %s", transaction.get("subscription_id"))
    else:
        logger.info("Unhandled payment event: %s", event_type)

    return {
        "received": True,
        "event_id": event_id,
        "event_type": event_type,
        "transaction_id": transaction.get("id"),
    }
