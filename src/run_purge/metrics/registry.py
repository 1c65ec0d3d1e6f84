"""
Prometheus metrics for purge runs, registered in the global REGISTRY.

Per-engine counters live in run_purge.engine.metrics and mirror into these.
"""

from prometheus_client import Counter, Gauge, Histogram


PURGE_REQUESTS_TOTAL = Counter(
    "purge_requests_total",
    "Remote delete attempts by outcome",
    ["outcome"],
)

PURGE_ATTEMPTS_TOTAL = Counter(
    "purge_attempts_total",
    "Remote delete attempts started",
)

PURGE_RETRIES_TOTAL = Counter(
    "purge_retries_total",
    "Retries scheduled after a failed delete attempt",
    ["reason"],
)

PURGE_RATE_LIMIT_HITS_TOTAL = Counter(
    "purge_rate_limit_hits_total",
    "Delete attempts answered with a rate limit",
)

PURGE_CIRCUIT_REJECTIONS_TOTAL = Counter(
    "purge_circuit_rejections_total",
    "Calls rejected by an open circuit breaker",
)

PURGE_CIRCUIT_STATE = Gauge(
    "purge_circuit_state",
    "Circuit breaker state (0=closed, 1=half_open, 2=open)",
)

PURGE_DELETE_LATENCY_SECONDS = Histogram(
    "purge_delete_latency_seconds",
    "Latency of a single remote delete attempt",
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)


class MetricsRegistry:
    """Centralized access to purge metrics."""

    attempts_total = PURGE_ATTEMPTS_TOTAL
    requests_total = PURGE_REQUESTS_TOTAL
    retries_total = PURGE_RETRIES_TOTAL
    rate_limit_hits_total = PURGE_RATE_LIMIT_HITS_TOTAL
    circuit_rejections_total = PURGE_CIRCUIT_REJECTIONS_TOTAL
    circuit_state = PURGE_CIRCUIT_STATE
    delete_latency = PURGE_DELETE_LATENCY_SECONDS


# Singleton instance
metrics_registry = MetricsRegistry()
