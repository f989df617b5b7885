"""
Prometheus instrumentation for the lockup engine.

Helper functions are called from the controller after a state change has
been committed, so counters only ever reflect completed operations.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge

lockups_created_counter = Counter(
    "lockup_created_total", "Total lockups created", ["revocable"]
)

tokens_locked_counter = Counter(
    "lockup_tokens_locked_total", "Total units pulled into custody by lockup creation"
)

tokens_released_counter = Counter(
    "lockup_tokens_released_total", "Total units released to beneficiaries"
)

tokens_refunded_counter = Counter(
    "lockup_tokens_refunded_total", "Total units refunded to the administrator by revocation"
)

rejected_operations_counter = Counter(
    "lockup_rejected_operations_total",
    "Total rejected lockup operations",
    ["operation", "error"],
)

outstanding_liability_gauge = Gauge(
    "lockup_outstanding_liability", "Units custody must still hold for all beneficiaries", ["custody"]
)


def record_created(amount: int, revocable: bool) -> None:
    lockups_created_counter.labels(revocable=str(revocable).lower()).inc()
    tokens_locked_counter.inc(amount)


def record_released(amount: int) -> None:
    if amount <= 0:
        return
    tokens_released_counter.inc(amount)


def record_refunded(amount: int) -> None:
    if amount <= 0:
        return
    tokens_refunded_counter.inc(amount)


def record_rejection(operation: str, error: str) -> None:
    rejected_operations_counter.labels(operation=operation, error=error).inc()


def update_outstanding_liability(custody_address: str, liability: int) -> None:
    outstanding_liability_gauge.labels(custody=custody_address).set(liability)
