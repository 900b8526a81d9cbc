"""Local evaluation of Hookdeck filter rules.

Only the body-filter operators the topology uses are supported. Hookdeck
evaluates the same rules server-side; this lets the plan output (and the
tests) show which connection each subscribed event type lands on.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Mapping

from .resources import ConnectionSpec, FilterRule

_OPERATORS: Dict[str, Callable[[str, str], bool]] = {
    "$eq": lambda actual, expected: actual == expected,
    "$startsWith": lambda actual, expected: actual.startswith(expected),
}


def rule_matches(rule: FilterRule, payload: Mapping[str, Any]) -> bool:
    op = _OPERATORS.get(rule.operator)
    if op is None:
        raise ValueError(f"Unsupported filter operator: {rule.operator}")
    actual = payload.get(rule.field)
    if not isinstance(actual, str):
        return False
    return op(actual, rule.value)


def connection_matches(connection: ConnectionSpec, payload: Mapping[str, Any]) -> bool:
    # A connection with no rules forwards everything.
    return all(rule_matches(r, payload) for r in connection.rules)


def matching_connections(event_type: str, connections: Iterable[ConnectionSpec]) -> List[str]:
    payload = {"event_type": event_type}
    return [c.name for c in connections if connection_matches(c, payload)]


def partition_violations(
    event_types: Iterable[str], connections: Iterable[ConnectionSpec]
) -> Dict[str, List[str]]:
    """Return event types routed to zero or several connections, with the matching names."""
    conns = list(connections)
    out: Dict[str, List[str]] = {}
    for event_type in event_types:
        names = matching_connections(event_type, conns)
        if len(names) != 1:
            out[event_type] = names
    return out
