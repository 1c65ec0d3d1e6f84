from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional, Sequence

from loguru import logger

from ..errors import CircuitOpenError
from .executor import RetryExecutor, Sleep
from .metrics import DeletionMetrics, MetricsSnapshot
from .policy import CircuitBreaker, CircuitState, RetryPolicy
from .settings import EngineSettings
from .types import DeletionResult

DeleteFn = Callable[[int], Awaitable[None]]


class DeletionEngine:
    """Batched, concurrent deletion with retries and a circuit breaker.

    Batches run one after another; ids inside a batch are deleted concurrently,
    so `batch_size` is the concurrency ceiling. Each engine owns a fresh
    breaker and metrics for its lifetime.

    Usage:
        engine = DeletionEngine(client.delete_run, EngineSettings())
        result = await engine.delete_all([101, 102, 103])
    """

    def __init__(
        self,
        delete_fn: DeleteFn,
        settings: Optional[EngineSettings] = None,
        *,
        dry_run: bool = False,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or EngineSettings()
        self.dry_run = dry_run
        self._delete_fn = delete_fn
        self._sleep = sleep

        s = self.settings
        self.breaker = CircuitBreaker(
            failure_threshold=s.circuit_failure_threshold,
            success_threshold=s.circuit_success_threshold,
            open_timeout_sec=s.circuit_open_timeout_sec,
            clock=clock,
        )
        self.metrics = DeletionMetrics()
        self.executor = RetryExecutor(
            self.breaker,
            self.metrics,
            RetryPolicy(
                max_retries=s.max_retries,
                initial_backoff_ms=s.initial_retry_delay_ms,
                max_backoff_ms=s.max_retry_delay_ms,
                rate_limit_wait_ms=s.rate_limit_wait_ms,
                jitter=s.retry_jitter,
                default_error_kind=s.unknown_error_kind,
            ),
            sleep=sleep,
        )

    def snapshot_metrics(self) -> MetricsSnapshot:
        return self.metrics.snapshot()

    async def delete_all(
        self,
        ids: Sequence[int],
        batch_size: Optional[int] = None,
        per_request_delay: Optional[float] = None,
    ) -> DeletionResult:
        """Delete every id; per-item failures are counted, never raised.

        Args:
            ids: Record ids in submission order
            batch_size: Max concurrent deletions (defaults to settings)
            per_request_delay: Seconds to pause after each remote attempt

        Returns:
            DeletionResult with succeeded/failed counts
        """
        size = batch_size if batch_size is not None else self.settings.batch_size
        if size < 1:
            raise ValueError("batch_size must be >= 1")
        delay = (
            per_request_delay
            if per_request_delay is not None
            else self.settings.per_request_delay_ms / 1000.0
        )

        succeeded = 0
        failed = 0
        for start in range(0, len(ids), size):
            batch = ids[start : start + size]
            outcomes = await asyncio.gather(
                *(self._delete_one(run_id, delay) for run_id in batch),
                return_exceptions=True,
            )
            for ok in outcomes:
                if ok is True:
                    succeeded += 1
                else:
                    failed += 1

            if self.breaker.state is CircuitState.OPEN:
                remaining = len(ids) - (start + len(batch))
                if remaining:
                    logger.warning(
                        f"Circuit breaker OPEN - stopping further deletions ({remaining} skipped)"
                    )
                failed += remaining
                break

        return DeletionResult(succeeded=succeeded, failed=failed)

    async def _delete_one(self, run_id: int, delay: float) -> bool:
        if self.dry_run:
            logger.info(f"DRY RUN: Would delete run #{run_id}")
            await self._sleep(self.settings.dry_run_delay_ms / 1000.0)
            return True

        name = f"delete run #{run_id}"
        try:
            logger.info(f"Deleting run #{run_id}")
            await self.executor.execute(lambda: self._delete_fn(run_id), name)
        except CircuitOpenError as exc:
            logger.error(f"Failed to delete run #{run_id}: {exc}")
            return False
        except Exception as exc:
            logger.error(f"Failed to delete run #{run_id}: {exc}")
            await self._sleep(delay)
            return False

        logger.success(f"Run #{run_id} was deleted")
        await self._sleep(delay)
        return True
