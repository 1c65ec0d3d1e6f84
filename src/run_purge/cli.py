from __future__ import annotations

import asyncio
import json
import sys
import time
from typing import Optional

import httpx
import typer
from loguru import logger
from prometheus_client import start_http_server

from .config import PurgeSettings, load_settings
from .engine import EngineSettings
from .errors import PurgeError
from .github import GitHubActionsClient
from .service import RunPurger, log_group_stats, log_metrics
from .utils import format_elapsed

app = typer.Typer(help="Delete old GitHub Actions workflow runs")

# ---------------------------
# Common options
# ---------------------------


def token_opt() -> Optional[str]:
    return typer.Option(None, "--token", envvar="PURGE_TOKEN", help="GitHub token")


def owner_opt() -> Optional[str]:
    return typer.Option(None, "--owner", help="Repository owner (user or organization)")


def repo_opt() -> Optional[str]:
    return typer.Option(None, "--repo", help="Repository name (or owner/repo)")


def keep_opt() -> Optional[int]:
    return typer.Option(None, "--keep", help="Most recent runs to keep per workflow")


def older_than_opt() -> Optional[int]:
    return typer.Option(None, "--older-than", help="Only runs older than this many days")


def workflows_opt() -> Optional[str]:
    return typer.Option(None, "--workflows", help="Comma-separated workflow names")


def log_level_opt() -> str:
    return typer.Option("INFO", "--log-level", help="Log level (DEBUG, INFO, WARNING...)")


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def _settings(**kwargs) -> PurgeSettings:
    try:
        return load_settings(**kwargs)
    except PurgeError as e:
        logger.error(str(e))
        sys.exit(1)


def _client(cfg: PurgeSettings) -> GitHubActionsClient:
    return GitHubActionsClient(
        cfg.token, cfg.owner, cfg.repo, workflow_names=cfg.workflow_name_list
    )


# ---------------------------
# Commands
# ---------------------------


@app.command("purge")
def purge(
    token: Optional[str] = token_opt(),
    owner: Optional[str] = owner_opt(),
    repo: Optional[str] = repo_opt(),
    keep: Optional[int] = keep_opt(),
    older_than: Optional[int] = older_than_opt(),
    workflows: Optional[str] = workflows_opt(),
    dry_run: Optional[bool] = typer.Option(None, "--dry-run/--no-dry-run"),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", help="Concurrent deletions"),
    metrics_port: Optional[int] = typer.Option(
        None, "--metrics-port", help="Expose Prometheus metrics on this port"
    ),
    log_level: str = log_level_opt(),
):
    """Plan and delete old workflow runs. Exits 1 if any deletion fails."""
    _configure_logging(log_level)
    cfg = _settings(
        token=token,
        owner=owner,
        repo=repo,
        runs_to_keep=keep,
        runs_older_than=older_than,
        dry_run=dry_run,
        workflow_names=workflows,
    )
    engine_cfg = EngineSettings()
    if batch_size is not None:
        engine_cfg = engine_cfg.model_copy(update={"batch_size": batch_size})

    if metrics_port:
        start_http_server(metrics_port)
        logger.info(f"Prometheus metrics available at http://localhost:{metrics_port}/metrics")

    try:
        code = asyncio.run(_purge(cfg, engine_cfg))
    except (PurgeError, httpx.HTTPError) as e:
        logger.error(f"Purge failed: {e}")
        sys.exit(1)
    if code:
        sys.exit(code)


async def _purge(cfg: PurgeSettings, engine_cfg: EngineSettings) -> int:
    if cfg.dry_run:
        logger.info("DRY RUN MODE - No runs will be actually deleted")

    async with _client(cfg) as gh:
        purger = RunPurger(gh, engine_cfg, dry_run=cfg.dry_run)

        logger.info(f"Fetching workflow runs for {cfg.owner}/{cfg.repo}...")
        plan = await purger.plan_deletion(cfg.runs_older_than, cfg.runs_to_keep)

        if not plan.ids_to_delete:
            logger.info("No runs to delete")
            log_metrics(purger.snapshot_metrics())
            return 0

        if cfg.runs_to_keep > 0:
            log_group_stats(plan, dry_run=cfg.dry_run)

        action = "Would delete" if cfg.dry_run else "Deleting"
        logger.info(f"{action} {len(plan.ids_to_delete)} total runs across all workflows...")

        t0 = time.monotonic()
        result = await purger.execute_deletion(plan.ids_to_delete)
        elapsed = format_elapsed(time.monotonic() - t0)

        if cfg.dry_run:
            logger.info(f"DRY RUN: Would have deleted {result.succeeded} runs ({elapsed})")
        else:
            logger.success(f"Deleted {result.succeeded} runs ({elapsed})")
        if result.failed > 0:
            logger.warning(f"Failed to delete {result.failed} runs")

        log_metrics(purger.snapshot_metrics())

    if result.failed > 0 and not cfg.dry_run:
        logger.error(
            f"Failed to delete {result.failed} out of {len(plan.ids_to_delete)} runs. "
            "Check logs for details."
        )
        return 1
    return 0


@app.command("plan")
def plan(
    token: Optional[str] = token_opt(),
    owner: Optional[str] = owner_opt(),
    repo: Optional[str] = repo_opt(),
    keep: Optional[int] = keep_opt(),
    older_than: Optional[int] = older_than_opt(),
    workflows: Optional[str] = workflows_opt(),
    log_level: str = log_level_opt(),
):
    """Print the retention plan as JSON without deleting anything."""
    _configure_logging(log_level)
    cfg = _settings(
        token=token,
        owner=owner,
        repo=repo,
        runs_to_keep=keep,
        runs_older_than=older_than,
        workflow_names=workflows,
    )

    async def _run():
        async with _client(cfg) as gh:
            purger = RunPurger(gh, dry_run=True)
            return await purger.plan_deletion(cfg.runs_older_than, cfg.runs_to_keep)

    try:
        result = asyncio.run(_run())
    except (PurgeError, httpx.HTTPError) as e:
        logger.error(f"Listing failed: {e}")
        sys.exit(1)
    typer.echo(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    app()
