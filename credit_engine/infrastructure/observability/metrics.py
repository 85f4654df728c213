"""Prometheus metrics for monitoring approval rates, risk tiers, gates and bureau health"""

from typing import Iterable, Optional
from prometheus_client import Counter, Histogram

# Evaluation metrics
evaluation_counter = Counter(
    "credit_evaluation_total",
    "Total credit evaluations",
    ["outcome"],  # approved | rejected | validation | service_unavailable | internal_error
)

risk_tier_counter = Counter(
    "credit_risk_tier_total",
    "Evaluations by risk tier",
    ["tier"],
)

gate_triggered_counter = Counter(
    "credit_gate_triggered_total",
    "Critical gate rules that forced a rejection",
    ["rule"],
)

# Bureau metrics
bureau_latency_histogram = Histogram(
    "bureau_lookup_latency_seconds",
    "Credit bureau lookup latency",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

bureau_failures_counter = Counter(
    "bureau_lookup_failures_total",
    "Failed credit bureau lookups",
)

bureau_retries_counter = Counter(
    "bureau_retries_total",
    "Bureau sub-queries retried after a transient failure",
)

# Cache metrics
cache_counter = Counter(
    "latest_result_cache_total",
    "Latest-result cache lookups",
    ["result"],  # hit | miss
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_evaluation(outcome: str, tier: Optional[str] = None) -> None:
    """Record evaluation metrics for monitoring approval rates and tier distribution"""
    evaluation_counter.labels(outcome=outcome).inc()

    if tier is not None:
        risk_tier_counter.labels(tier=tier).inc()


def record_gate_triggers(codes: Iterable[str]) -> None:
    for code in codes:
        gate_triggered_counter.labels(rule=code).inc()
