from __future__ import annotations

import asyncio
from time import perf_counter
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

from ..errors import CircuitOpenError, ErrorKind
from ..metrics.registry import metrics_registry
from .metrics import DeletionMetrics
from .policy import CircuitBreaker, RetryPolicy

T = TypeVar("T")
Sleep = Callable[[float], Awaitable[None]]


class RetryExecutor:
    """Run one remote call with circuit gating, retries and rate-limit waits.

    - Circuit open: raise CircuitOpenError (a rejection, not a retry)
    - Rate limited: wait retry-after (or the default wait) and try again;
      these waits do not consume the retry budget
    - Client error: fail immediately
    - Server / network error: exponential backoff until `max_retries` is spent
    """

    def __init__(
        self,
        breaker: CircuitBreaker,
        metrics: DeletionMetrics,
        policy: Optional[RetryPolicy] = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ):
        self.breaker = breaker
        self.metrics = metrics
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def execute(self, operation: Callable[[], Awaitable[T]], name: str = "operation") -> T:
        policy = self.policy
        attempt = 0

        while True:
            if not self.breaker.can_execute():
                self.metrics.record_rejection()
                raise CircuitOpenError(self.breaker.state.value, name)

            self.metrics.record_attempt()
            t0 = perf_counter()
            try:
                result = await operation()
            except Exception as exc:
                metrics_registry.delete_latency.observe(perf_counter() - t0)
                verdict = policy.classify(exc)

                if verdict.kind is ErrorKind.RATE_LIMITED:
                    self.metrics.record_rate_limit_hit()
                    wait_ms = policy.rate_limit_wait_ms_for(verdict)
                    logger.warning(f"Rate limit hit for {name}, waiting {wait_ms:.0f}ms")
                    await self._sleep(wait_ms / 1000.0)
                    self.metrics.record_retry(verdict.kind.value)
                    continue

                if verdict.kind is ErrorKind.CLIENT_ERROR:
                    self.metrics.record_failure()
                    self.breaker.record_failure()
                    raise

                if attempt < policy.max_retries:
                    delay_ms = policy.next_backoff_ms(attempt)
                    logger.warning(
                        f"{name} failed (attempt {attempt + 1}/{policy.max_retries + 1}), "
                        f"retrying in {delay_ms:.0f}ms: {exc}"
                    )
                    await self._sleep(delay_ms / 1000.0)
                    self.metrics.record_retry(verdict.kind.value)
                    attempt += 1
                    continue

                self.metrics.record_failure()
                self.breaker.record_failure()
                raise

            metrics_registry.delete_latency.observe(perf_counter() - t0)
            self.metrics.record_success()
            self.breaker.record_success()
            return result
