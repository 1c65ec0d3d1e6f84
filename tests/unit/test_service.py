"""
Unit tests for RunPurger (plan + execute against a fake store).
"""

from datetime import datetime, timedelta, timezone

import pytest

from run_purge import RunPurger
from run_purge.engine import DeletionResult, Record
from run_purge.errors import RemoteCallError
from run_purge.service import log_group_stats, log_metrics


class FakeStore:
    def __init__(self, records=(), list_error=None, fail_ids=()):
        self.records = list(records)
        self.list_error = list_error
        self.fail_ids = set(fail_ids)
        self.deleted = []
        self.list_args = []

    async def list_runs(self, older_than_days=None):
        self.list_args.append(older_than_days)
        if self.list_error:
            raise self.list_error
        for r in self.records:
            yield r

    async def delete_run(self, run_id):
        if run_id in self.fail_ids:
            raise RemoteCallError(404, "Not Found")
        self.deleted.append(run_id)


@pytest.fixture
def records():
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        Record(id=i, group_id=100 if i <= 4 else 200, created_at=base + timedelta(hours=i))
        for i in range(1, 7)
    ]


@pytest.mark.asyncio
async def test_plan_then_execute(records, fast_settings, fake_sleep, clock):
    store = FakeStore(records)
    purger = RunPurger(store, fast_settings, sleep=fake_sleep, clock=clock)

    plan = await purger.plan_deletion(older_than_days=7, keep_per_group=2)
    assert store.list_args == [7]
    assert sorted(plan.ids_to_delete) == [1, 2]
    assert plan.per_group_stats[200].to_delete == 0

    result = await purger.execute_deletion(plan.ids_to_delete)
    assert result == DeletionResult(succeeded=2, failed=0)
    assert sorted(store.deleted) == [1, 2]

    m = purger.snapshot_metrics()
    assert m.total_attempts == 2
    assert m.successes == 2


@pytest.mark.asyncio
async def test_listing_failure_propagates_unmodified(fast_settings):
    boom = RemoteCallError(500, "listing exploded")
    purger = RunPurger(FakeStore(list_error=boom), fast_settings)

    with pytest.raises(RemoteCallError) as ei:
        await purger.plan_deletion(7, 0)
    assert ei.value is boom


@pytest.mark.asyncio
async def test_execute_absorbs_item_failures(records, fast_settings, fake_sleep, clock):
    store = FakeStore(records, fail_ids={3})
    purger = RunPurger(store, fast_settings, sleep=fake_sleep, clock=clock)

    result = await purger.execute_deletion([1, 2, 3])
    assert result == DeletionResult(succeeded=2, failed=1)


@pytest.mark.asyncio
async def test_dry_run_reports_same_successes(records, fast_settings, fake_sleep, clock):
    store = FakeStore(records, fail_ids={1})
    purger = RunPurger(store, fast_settings, dry_run=True, sleep=fake_sleep, clock=clock)

    plan = await purger.plan_deletion(7, 0)
    result = await purger.execute_deletion(plan.ids_to_delete)

    assert result == DeletionResult(succeeded=6, failed=0)
    assert store.deleted == []


@pytest.mark.asyncio
async def test_each_purger_starts_fresh(records, fast_settings, fake_sleep, clock):
    store = FakeStore(records)
    first = RunPurger(store, fast_settings, sleep=fake_sleep, clock=clock)
    await first.execute_deletion([1, 2])

    second = RunPurger(store, fast_settings, sleep=fake_sleep, clock=clock)
    assert second.snapshot_metrics().total_attempts == 0
    assert second.engine.breaker is not first.engine.breaker


def test_log_helpers_run(records):
    from run_purge.engine import select_for_deletion
    from run_purge.engine.metrics import MetricsSnapshot

    log_group_stats(select_for_deletion(records, 1), dry_run=True)
    log_metrics(MetricsSnapshot(total_attempts=3, successes=2, failures=1))
