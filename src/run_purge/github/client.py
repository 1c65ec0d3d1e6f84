from __future__ import annotations

from typing import AsyncIterator, Iterable, Optional

import httpx
from loguru import logger

from ..engine.types import Record
from ..errors import RemoteCallError
from ..utils import created_before_filter

DEFAULT_BASE_URL = "https://api.github.com"
API_VERSION = "2022-11-28"
PAGE_SIZE = 100


class GitHubActionsClient:
    """
    Async client for the GitHub Actions workflow-runs endpoints.

    Usage:

        async with GitHubActionsClient(token, "octo", "repo") as gh:
            async for run in gh.list_runs(older_than_days=7):
                ...
            await gh.delete_run(run.id)
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        *,
        workflow_names: Optional[Iterable[str]] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not token:
            raise ValueError("token required")
        self.owner = owner
        self.repo = repo
        self.workflow_names = frozenset(workflow_names or ())
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }

    async def __aenter__(self) -> "GitHubActionsClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def _runs_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}/actions/runs"

    # ---------- reads ----------

    async def list_runs(self, older_than_days: Optional[int] = None) -> AsyncIterator[Record]:
        """Yield completed runs, page by page, optionally older than N days."""
        params = {"status": "completed", "per_page": PAGE_SIZE}
        created = created_before_filter(older_than_days)
        if created:
            params["created"] = created

        url: Optional[str] = self._runs_path
        while url:
            response = await self._client.get(url, params=params, headers=self._headers)
            if response.is_error:
                raise RemoteCallError.from_response(response)

            for raw in response.json().get("workflow_runs", []):
                name = raw.get("name") or ""
                if self.workflow_names and name not in self.workflow_names:
                    continue
                yield Record(
                    id=raw["id"],
                    workflow_id=raw["workflow_id"],
                    created_at=raw["created_at"],
                    name=name,
                )

            url = response.links.get("next", {}).get("url")
            # the next link already carries the query string
            params = None

    # ---------- writes ----------

    async def delete_run(self, run_id: int) -> None:
        response = await self._client.delete(f"{self._runs_path}/{run_id}", headers=self._headers)
        if response.is_error:
            raise RemoteCallError.from_response(response)
        logger.debug(f"DELETE run #{run_id} -> {response.status_code}")
