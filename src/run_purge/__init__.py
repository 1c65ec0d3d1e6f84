"""
run-purge

Deletes old GitHub Actions workflow runs against a rate-limited API:
keep the newest N runs per workflow, delete the rest in concurrent batches
with retries, backoff and a circuit breaker.

Usage:
    from run_purge import GitHubActionsClient, RunPurger

    async with GitHubActionsClient(token, "octo", "repo") as gh:
        purger = RunPurger(gh)
        plan = await purger.plan_deletion(older_than_days=7, keep_per_group=5)
        result = await purger.execute_deletion(plan.ids_to_delete)
"""

from .engine import (
    CircuitBreaker,
    CircuitState,
    DeletionEngine,
    DeletionResult,
    EngineSettings,
    MetricsSnapshot,
    Record,
    RetentionPlan,
    RetryExecutor,
    RetryPolicy,
    select_for_deletion,
)
from .errors import (
    CircuitOpenError,
    ConfigurationError,
    ErrorKind,
    PurgeError,
    RemoteCallError,
    classify,
)
from .github import GitHubActionsClient
from .service import RunPurger

__version__ = "1.0.0"
__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "DeletionEngine",
    "DeletionResult",
    "EngineSettings",
    "MetricsSnapshot",
    "Record",
    "RetentionPlan",
    "RetryExecutor",
    "RetryPolicy",
    "select_for_deletion",
    "CircuitOpenError",
    "ConfigurationError",
    "ErrorKind",
    "PurgeError",
    "RemoteCallError",
    "classify",
    "GitHubActionsClient",
    "RunPurger",
]
