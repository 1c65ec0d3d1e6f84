"""Deletion engine

Retention selection plus the fault-tolerant execution layer:
- Retention selector (keep newest N per workflow)
- RetryExecutor with exponential backoff and rate-limit waits
- CircuitBreaker for fault protection
- DeletionEngine batching with bounded concurrency
- Per-run metrics mirrored to Prometheus
- Environment-based settings
"""

from .types import Record, GroupStats, RetentionPlan, DeletionResult, RunStore
from .policy import CircuitBreaker, CircuitState, RetryPolicy
from .executor import RetryExecutor
from .retention import select_for_deletion
from .metrics import DeletionMetrics, MetricsSnapshot
from .deleter import DeletionEngine
from .settings import EngineSettings

__all__ = [
    # types
    "Record",
    "GroupStats",
    "RetentionPlan",
    "DeletionResult",
    "RunStore",
    "MetricsSnapshot",
    # policies
    "CircuitBreaker",
    "CircuitState",
    "RetryPolicy",
    # runtime
    "RetryExecutor",
    "DeletionEngine",
    "DeletionMetrics",
    "EngineSettings",
    "select_for_deletion",
]
