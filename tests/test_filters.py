import pytest

from hookdeck_billing.provisioning.filters import matching_connections, partition_violations, rule_matches
from hookdeck_billing.provisioning.reconciler import CONNECTION_RULES
from hookdeck_billing.provisioning.resources import (
    ALL_WEBHOOK_EVENTS,
    ConnectionSpec,
    DestinationSpec,
    FilterRule,
)


def _connections():
    names = {"customer": "chargebee-customer", "subscription": "chargebee-subscription", "payment": "chargebee-payment"}
    return [
        ConnectionSpec(
            name=names[role],
            source_id="src_1",
            destination=DestinationSpec(name=f"{role}-handler", mode="dev", path=f"/{role}"),
            rules=[rule],
        )
        for role, rule in CONNECTION_RULES.items()
    ]


@pytest.mark.parametrize(
    "event_type,expected",
    [
        ("customer_created", "chargebee-customer"),
        ("customer_moved_out", "chargebee-customer"),
        ("subscription_renewed", "chargebee-subscription"),
        ("subscription_scheduled_changes_removed", "chargebee-subscription"),
        ("payment_succeeded", "chargebee-payment"),
    ],
)
def test_event_routes_to_exactly_one_connection(event_type, expected):
    assert matching_connections(event_type, _connections()) == [expected]


def test_every_subscribed_event_is_routed_once():
    assert partition_violations(ALL_WEBHOOK_EVENTS, _connections()) == {}


def test_unsubscribed_events_are_reported():
    violations = partition_violations(["payment_failed", "invoice_generated"], _connections())
    assert violations == {"payment_failed": [], "invoice_generated": []}


def test_overlapping_rules_are_reported():
    conns = _connections()
    conns.append(
        ConnectionSpec(
            name="catch-all-customer",
            source_id="src_1",
            destination=DestinationSpec(name="x", mode="dev", path="/x"),
            rules=[FilterRule("event_type", "$startsWith", "customer")],
        )
    )
    violations = partition_violations(["customer_created"], conns)
    assert violations == {"customer_created": ["chargebee-customer", "catch-all-customer"]}


def test_rule_matches_requires_string_field():
    rule = FilterRule("event_type", "$eq", "payment_succeeded")
    assert rule_matches(rule, {"event_type": "payment_succeeded"}) is True
    assert rule_matches(rule, {}) is False
    assert rule_matches(rule, {"event_type": None}) is False


def test_unknown_operator_raises():
    with pytest.raises(ValueError):
        rule_matches(FilterRule("event_type", "$regex", ".*"), {"event_type": "x"})
