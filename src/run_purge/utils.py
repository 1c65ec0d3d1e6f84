"""
Utility functions for run-purge.

Includes time helpers, the GitHub `created` search qualifier and backoff math.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

_UNITS_MS = (
    ("weeks", 7 * 24 * 3600 * 1000),
    ("days", 24 * 3600 * 1000),
    ("hours", 3600 * 1000),
    ("minutes", 60 * 1000),
    ("seconds", 1000),
)


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def created_before_filter(older_than_days: Optional[int], now: Optional[datetime] = None) -> Optional[str]:
    """
    Build the `created` qualifier for the workflow-runs listing.

    Returns None when no age filter applies (None or 0 days).
    """
    if not older_than_days or older_than_days <= 0:
        return None
    cutoff = (now or utc_now()) - timedelta(days=older_than_days)
    return f"<{cutoff.date().isoformat()}"


def calculate_retry_delay(
    attempt: int, base_delay_ms: int = 1000, max_delay_ms: int = 32000, jitter: bool = False
) -> float:
    """
    Calculate retry delay with exponential backoff and optional jitter.

    Args:
        attempt: Current attempt number (0-based)
        base_delay_ms: Base delay in milliseconds
        max_delay_ms: Maximum delay in milliseconds
        jitter: Add random jitter to prevent thundering herd

    Returns:
        Delay in milliseconds
    """
    # Exponential backoff: base_delay * 2^attempt
    delay_ms = float(min(base_delay_ms * (2**attempt), max_delay_ms))

    if jitter:
        # Add ±25% jitter, still capped
        jitter_range = delay_ms * 0.25
        delay_ms = min(delay_ms + random.uniform(-jitter_range, jitter_range), float(max_delay_ms))

    return max(0.0, delay_ms)


def split_time_units(ms: int) -> Dict[str, int]:
    """Break milliseconds into the largest whole units (weeks down to ms)."""
    if ms < 0:
        raise ValueError("ms must be non-negative")
    remaining = int(ms)
    units: Dict[str, int] = {}
    for name, size in _UNITS_MS:
        units[name], remaining = divmod(remaining, size)
    units["milliseconds"] = remaining
    return units


def format_elapsed(seconds: float) -> str:
    """Human readable duration, e.g. '1m 5s' or '350ms'."""
    units = split_time_units(int(round(seconds * 1000)))
    labels = {"weeks": "w", "days": "d", "hours": "h", "minutes": "m", "seconds": "s"}
    parts = [f"{units[k]}{v}" for k, v in labels.items() if units[k]]
    if not parts:
        return f"{units['milliseconds']}ms"
    return " ".join(parts)
