"""Prometheus metrics.

Exposes order lifecycle and contention metrics for monitoring via Grafana.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

# ---------------------------------------------------------------------------
# Order metrics
# ---------------------------------------------------------------------------

ORDERS_CREATED_TOTAL = Counter(
    "pancake_lab_orders_created_total",
    "Total orders created",
)

ORDER_TRANSITIONS_TOTAL = Counter(
    "pancake_lab_order_transitions_total",
    "Successful order state transitions",
    ["from_state", "to_state"],
)

ACTIVE_ORDERS = Gauge(
    "pancake_lab_active_orders",
    "Orders currently held in the active index",
)

# ---------------------------------------------------------------------------
# Contention metrics
# ---------------------------------------------------------------------------

OPTIMISTIC_RETRIES_TOTAL = Counter(
    "pancake_lab_optimistic_retries_total",
    "Compare-and-set attempts lost to a concurrent writer",
    ["target"],
)

CONCURRENCY_EXHAUSTED_TOTAL = Counter(
    "pancake_lab_concurrency_exhausted_total",
    "Operations abandoned after exhausting the retry budget",
    ["target"],
)


def record_transition(from_state: str, to_state: str) -> None:
    ORDER_TRANSITIONS_TOTAL.labels(from_state=from_state, to_state=to_state).inc()
