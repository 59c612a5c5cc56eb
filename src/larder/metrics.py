"""Prometheus metrics definitions for Larder."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "larder_http_requests_total",
    "Total number of HTTP requests processed by the Larder API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "larder_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Larder API",
    ["method", "path"],
)

ENGINE_OPERATIONS = Counter(
    "larder_engine_operations_total",
    "Number of engine operations by name and outcome",
    ["operation", "result"],
)

PERSISTENCE_FAILURES = Counter(
    "larder_persistence_failures_total",
    "Number of failed persistence writes by logical table",
    ["table"],
)

SHOPPING_TRANSITIONS = Counter(
    "larder_shopping_transitions_total",
    "Shopping list state machine transitions",
    ["event", "result"],
)

UNDO_OPERATIONS = Counter(
    "larder_undo_operations_total",
    "Activity undo requests by action and outcome",
    ["action", "result"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "ENGINE_OPERATIONS",
    "PERSISTENCE_FAILURES",
    "SHOPPING_TRANSITIONS",
    "UNDO_OPERATIONS",
]
