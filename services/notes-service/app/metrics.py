"""Prometheus collectors shared by the service components."""

from __future__ import annotations

from prometheus_client import Counter

RATE_LIMIT_DECISIONS = Counter(
    "notes_rate_limit_decisions_total",
    "Rate limiter decisions by outcome.",
    ["backend", "outcome"],
)
