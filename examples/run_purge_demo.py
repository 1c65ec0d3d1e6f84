"""
Demo for the deletion engine against an in-memory flaky remote.

Shows:
- Retention planning (keep newest N per workflow)
- Retries with backoff on 5xx, waits on 429
- Circuit breaker opening when the remote keeps failing
- Prometheus metrics (exposed on :8000/metrics)
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone

from loguru import logger
from prometheus_client import start_http_server

from run_purge import EngineSettings, Record, RemoteCallError, RunPurger
from run_purge.service import log_group_stats, log_metrics


class FlakyRemote:
    """Fails some deletes with 500/429, and every delete after `outage_after`."""

    def __init__(self, n_runs: int = 120, outage_after: int = 60):
        base = datetime.now(timezone.utc) - timedelta(days=30)
        self.runs = [
            Record(id=i, group_id=i % 4, created_at=base + timedelta(minutes=i), name=f"wf-{i % 4}")
            for i in range(1, n_runs + 1)
        ]
        self.outage_after = outage_after
        self.deleted = 0

    async def list_runs(self, older_than_days=None):
        for run in self.runs:
            yield run

    async def delete_run(self, run_id: int) -> None:
        await asyncio.sleep(0.005)  # simulate I/O
        if self.deleted >= self.outage_after:
            raise RemoteCallError(502, "Bad Gateway")
        roll = random.random()
        if roll < 0.05:
            raise RemoteCallError(429, "secondary rate limit", retry_after_seconds=0.05)
        if roll < 0.15:
            raise RemoteCallError(500, "Internal Server Error")
        self.deleted += 1


async def main():
    start_http_server(8000)
    logger.info("📊 Prometheus metrics available at http://localhost:8000/metrics")

    settings = EngineSettings(
        batch_size=10,
        per_request_delay_ms=10,
        max_retries=2,
        initial_retry_delay_ms=20,
        max_retry_delay_ms=100,
        circuit_open_timeout_sec=1.0,
    )
    remote = FlakyRemote()
    purger = RunPurger(remote, settings)

    plan = await purger.plan_deletion(older_than_days=7, keep_per_group=5)
    log_group_stats(plan)

    result = await purger.execute_deletion(plan.ids_to_delete)
    logger.info(f"Done: succeeded={result.succeeded} failed={result.failed}")
    logger.info(f"Circuit: {purger.engine.breaker.state.value}")
    log_metrics(purger.snapshot_metrics())


if __name__ == "__main__":
    asyncio.run(main())
