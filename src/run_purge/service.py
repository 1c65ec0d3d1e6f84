"""
Purge service: plans a deletion from the remote listing and executes it.

This is the surface callers (the CLI, or another program) work with. Listing
failures propagate unchanged; per-run deletion failures are only counted.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional, Sequence

from loguru import logger

from .engine import (
    DeletionEngine,
    DeletionResult,
    EngineSettings,
    MetricsSnapshot,
    RetentionPlan,
    RunStore,
    select_for_deletion,
)
from .engine.executor import Sleep


class RunPurger:
    def __init__(
        self,
        store: RunStore,
        settings: Optional[EngineSettings] = None,
        *,
        dry_run: bool = False,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.dry_run = dry_run
        self.engine = DeletionEngine(
            store.delete_run, settings, dry_run=dry_run, sleep=sleep, clock=clock
        )

    async def plan_deletion(self, older_than_days: int, keep_per_group: int) -> RetentionPlan:
        records = [r async for r in self.store.list_runs(older_than_days)]
        plan = select_for_deletion(records, keep_per_group)
        logger.info(
            f"Found {plan.total_records} runs older than {older_than_days} days, "
            f"{len(plan.ids_to_delete)} selected for deletion"
        )
        return plan

    async def execute_deletion(self, ids: Sequence[int]) -> DeletionResult:
        return await self.engine.delete_all(ids)

    def snapshot_metrics(self) -> MetricsSnapshot:
        return self.engine.snapshot_metrics()


def log_group_stats(plan: RetentionPlan, *, dry_run: bool = False) -> None:
    action = "would delete" if dry_run else "deleting"
    for group_id, stats in plan.per_group_stats.items():
        if stats.to_delete > 0:
            logger.info(
                f"Workflow {group_id}: keeping {stats.kept} runs, {action} {stats.to_delete} runs"
            )


def log_metrics(snapshot: MetricsSnapshot) -> None:
    logger.info("=== API Metrics ===")
    logger.info(f"Total API requests: {snapshot.total_attempts}")
    logger.info(f"Successful requests: {snapshot.successes}")
    logger.info(f"Failed requests: {snapshot.failures}")
    logger.info(f"Retry attempts: {snapshot.retries}")
    logger.info(f"Rate limit hits: {snapshot.rate_limit_hits}")
    logger.info(f"Circuit breaker rejections: {snapshot.circuit_breaker_rejections}")
    logger.info("==================")
