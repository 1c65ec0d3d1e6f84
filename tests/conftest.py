"""
Pytest configuration and fixtures for run-purge.

Provides cross-platform event loop configuration, a fake clock and a
recording sleep so delays never actually elapse.
"""

import asyncio
import sys
from datetime import datetime, timedelta, timezone

import pytest

from run_purge.engine import EngineSettings, Record

# Set policy *before* pytest-asyncio creates any loops
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

VALID_TOKEN = "ghp_" + "a1B2c3D4e5" * 4


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


@pytest.fixture
def fast_settings():
    """Engine settings with production thresholds but no real waiting."""
    return EngineSettings(
        per_request_delay_ms=0,
        dry_run_delay_ms=0,
        initial_retry_delay_ms=1000,
        max_retry_delay_ms=32000,
        rate_limit_wait_ms=60000,
    )


@pytest.fixture
def valid_token():
    return VALID_TOKEN


@pytest.fixture
def make_record():
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _make(run_id: int, group_id: int, hours: int = 0) -> Record:
        return Record(id=run_id, group_id=group_id, created_at=base + timedelta(hours=hours))

    return _make
