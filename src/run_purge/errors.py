"""
Custom exceptions and failure classification for run-purge.

Every remote failure is classified once, here, into a tagged result that the
retry executor acts on. Call sites never inspect status codes themselves.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx


class PurgeError(Exception):
    """Base error for run-purge."""

    pass


class ConfigurationError(PurgeError):
    """Invalid or missing run inputs."""

    pass


class RemoteCallError(PurgeError):
    """Non-2xx reply from the remote API."""

    def __init__(
        self,
        status_code: Optional[int],
        message: str,
        *,
        retry_after_seconds: Optional[float] = None,
        rate_limit_remaining: Optional[int] = None,
    ):
        self.status_code = status_code
        self.message = message
        self.retry_after_seconds = retry_after_seconds
        self.rate_limit_remaining = rate_limit_remaining
        prefix = f"HTTP {status_code}: " if status_code is not None else ""
        super().__init__(f"{prefix}{message}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> "RemoteCallError":
        try:
            body = response.json()
            message = body.get("message", "") if isinstance(body, dict) else str(body)
        except ValueError:
            message = response.text
        remaining = _int_header(response.headers.get("x-ratelimit-remaining"))
        retry_after = _float_header(response.headers.get("retry-after"))
        if retry_after is None and remaining == 0:
            reset = _float_header(response.headers.get("x-ratelimit-reset"))
            wait = reset - time.time() if reset is not None else 0.0
            if wait > 0:
                retry_after = wait
        return cls(
            response.status_code,
            message or response.reason_phrase,
            retry_after_seconds=retry_after,
            rate_limit_remaining=remaining,
        )


class CircuitOpenError(PurgeError):
    """Raised when the circuit breaker rejects a call."""

    def __init__(self, state: str, operation: str = ""):
        self.state = state
        self.operation = operation
        target = f" - skipping {operation}" if operation else ""
        super().__init__(f"Circuit breaker is {state}{target}")


class ErrorKind(str, Enum):
    """Failure buckets driving retry decisions."""

    RATE_LIMITED = "rate_limited"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class Classification:
    kind: ErrorKind
    status_code: Optional[int] = None
    retry_after_seconds: Optional[float] = None

    @property
    def retryable(self) -> bool:
        return self.kind is not ErrorKind.CLIENT_ERROR


_RATE_LIMIT_RE = re.compile(r"rate.?limit", re.IGNORECASE)
_NETWORK_RE = re.compile(
    r"econnreset|econnrefused|etimedout|socket hang up|connection (reset|refused|aborted)"
    r"|timed out|timeout",
    re.IGNORECASE,
)


def classify(exc: BaseException, *, default: ErrorKind = ErrorKind.SERVER_ERROR) -> Classification:
    """
    Map a failure to an ErrorKind.

    Args:
        exc: The exception raised by the remote call
        default: Bucket for failures carrying no status code and no
            recognizable message (also used for statuses outside 4xx/5xx)

    Returns:
        Classification with the status code and any retry-after hint
    """
    status = getattr(exc, "status_code", None)
    retry_after = getattr(exc, "retry_after_seconds", None)
    remaining = getattr(exc, "rate_limit_remaining", None)
    message = getattr(exc, "message", None) or str(exc)

    if status == 429:
        return Classification(ErrorKind.RATE_LIMITED, status, retry_after)
    if status == 403 and (remaining == 0 or _RATE_LIMIT_RE.search(message)):
        return Classification(ErrorKind.RATE_LIMITED, status, retry_after)
    if _RATE_LIMIT_RE.search(message):
        return Classification(ErrorKind.RATE_LIMITED, status, retry_after)

    if status is not None:
        if 400 <= status < 500:
            return Classification(ErrorKind.CLIENT_ERROR, status)
        if 500 <= status < 600:
            return Classification(ErrorKind.SERVER_ERROR, status)
        return Classification(default, status)

    if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError)):
        return Classification(ErrorKind.NETWORK_ERROR)
    if _NETWORK_RE.search(message):
        return Classification(ErrorKind.NETWORK_ERROR)
    return Classification(default)


def _int_header(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _float_header(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None
