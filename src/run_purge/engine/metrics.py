"""
Per-engine counters for one purge run.

Counters only ever increase. Each increment is mirrored to the process-wide
Prometheus registry so a long-lived exporter sees totals across engines.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..metrics.registry import metrics_registry


@dataclass(frozen=True)
class MetricsSnapshot:
    """Read-only copy of the engine counters."""

    total_attempts: int = 0
    successes: int = 0
    failures: int = 0
    retries: int = 0
    rate_limit_hits: int = 0
    circuit_breaker_rejections: int = 0


class DeletionMetrics:
    def __init__(self) -> None:
        self._total_attempts = 0
        self._successes = 0
        self._failures = 0
        self._retries = 0
        self._rate_limit_hits = 0
        self._circuit_breaker_rejections = 0

    def record_attempt(self) -> None:
        self._total_attempts += 1
        metrics_registry.attempts_total.inc()

    def record_success(self) -> None:
        self._successes += 1
        metrics_registry.requests_total.labels(outcome="success").inc()

    def record_failure(self) -> None:
        self._failures += 1
        metrics_registry.requests_total.labels(outcome="failure").inc()

    def record_retry(self, reason: str) -> None:
        self._retries += 1
        metrics_registry.retries_total.labels(reason=reason).inc()

    def record_rate_limit_hit(self) -> None:
        self._rate_limit_hits += 1
        metrics_registry.rate_limit_hits_total.inc()

    def record_rejection(self) -> None:
        self._circuit_breaker_rejections += 1
        metrics_registry.circuit_rejections_total.inc()

    def snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(
            total_attempts=self._total_attempts,
            successes=self._successes,
            failures=self._failures,
            retries=self._retries,
            rate_limit_hits=self._rate_limit_hits,
            circuit_breaker_rejections=self._circuit_breaker_rejections,
        )
