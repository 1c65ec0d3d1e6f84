"""
Failure policies for the deletion engine.

- CircuitBreaker: three-state fault detector (closed / open / half_open)
- RetryPolicy: exponential backoff parameters and error classification
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from ..errors import Classification, ErrorKind, classify
from ..metrics.registry import metrics_registry
from ..utils import calculate_retry_delay


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


_STATE_GAUGE = {CircuitState.CLOSED: 0, CircuitState.HALF_OPEN: 1, CircuitState.OPEN: 2}


class CircuitBreaker:
    """Circuit breaker guarding calls to the remote API.

    All methods are synchronous and O(1). Callers share a single event loop,
    so no method is ever interleaved with another.

    Usage:
        cb = CircuitBreaker(failure_threshold=5, success_threshold=2, open_timeout_sec=60)
        if cb.can_execute():
            try:
                await call()
                cb.record_success()
            except Exception:
                cb.record_failure()
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        success_threshold: int = 2,
        open_timeout_sec: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        if failure_threshold < 1 or success_threshold < 1:
            raise ValueError("thresholds must be >= 1")
        self.failure_threshold = failure_threshold
        self.success_threshold = success_threshold
        self.open_timeout_sec = open_timeout_sec
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._half_open_successes = 0
        self._last_failure_at: Optional[float] = None
        metrics_registry.circuit_state.set(_STATE_GAUGE[self._state])

    @property
    def state(self) -> CircuitState:
        return self._state

    def get_state(self) -> CircuitState:
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def half_open_successes(self) -> int:
        return self._half_open_successes

    @property
    def last_failure_at(self) -> Optional[float]:
        return self._last_failure_at

    def can_execute(self) -> bool:
        """Check whether a call may proceed.

        While open, the first check after `open_timeout_sec` moves the breaker
        to half_open and lets the call through as a recovery probe.
        """
        if self._state is CircuitState.CLOSED or self._state is CircuitState.HALF_OPEN:
            return True

        elapsed = self._clock() - (self._last_failure_at or 0.0)
        if elapsed >= self.open_timeout_sec:
            logger.info("Circuit breaker HALF_OPEN - testing recovery")
            self._transition(CircuitState.HALF_OPEN)
            return True
        return False

    def record_success(self) -> None:
        self._consecutive_failures = 0
        if self._state is CircuitState.HALF_OPEN:
            self._half_open_successes += 1
            if self._half_open_successes >= self.success_threshold:
                logger.info("Circuit breaker CLOSED - service recovered")
                self._transition(CircuitState.CLOSED)

    def record_failure(self) -> None:
        self._consecutive_failures += 1
        self._last_failure_at = self._clock()

        if self._state is CircuitState.HALF_OPEN:
            logger.warning("Circuit breaker OPEN - recovery failed")
            self._transition(CircuitState.OPEN)
        elif (
            self._state is CircuitState.CLOSED
            and self._consecutive_failures >= self.failure_threshold
        ):
            logger.warning(
                f"Circuit breaker OPEN - too many failures ({self._consecutive_failures})"
            )
            self._transition(CircuitState.OPEN)

    def _transition(self, new_state: CircuitState) -> None:
        self._state = new_state
        # half_open_successes only counts within a half_open window
        self._half_open_successes = 0
        if new_state is CircuitState.CLOSED:
            self._consecutive_failures = 0
        metrics_registry.circuit_state.set(_STATE_GAUGE[new_state])


@dataclass
class RetryPolicy:
    """Backoff parameters for the retry executor.

    Server and network errors back off exponentially from `initial_backoff_ms`
    up to `max_backoff_ms`. Rate-limited calls wait for the remote's
    retry-after hint, or `rate_limit_wait_ms` without one.
    """

    max_retries: int = 3
    initial_backoff_ms: int = 1000
    max_backoff_ms: int = 32000
    rate_limit_wait_ms: int = 60000
    jitter: bool = False
    default_error_kind: ErrorKind = ErrorKind.SERVER_ERROR
    classifier: Callable[..., Classification] = field(default=classify, repr=False)

    def next_backoff_ms(self, attempt: int) -> float:
        """Delay before retrying after the given 0-based attempt."""
        return calculate_retry_delay(
            attempt,
            base_delay_ms=self.initial_backoff_ms,
            max_delay_ms=self.max_backoff_ms,
            jitter=self.jitter,
        )

    def rate_limit_wait_ms_for(self, classification: Classification) -> float:
        if classification.retry_after_seconds is not None and classification.retry_after_seconds > 0:
            return classification.retry_after_seconds * 1000.0
        return float(self.rate_limit_wait_ms)

    def classify(self, exc: BaseException) -> Classification:
        return self.classifier(exc, default=self.default_error_kind)
