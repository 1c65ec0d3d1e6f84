"""
Core types shared by the retention selector and the deletion engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import AsyncIterator, Awaitable, Mapping, Optional, Protocol, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    """One workflow run as returned by the listing endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    group_id: int = Field(alias="workflow_id")
    created_at: datetime
    name: str = ""


@dataclass(frozen=True)
class GroupStats:
    total: int
    to_delete: int

    @property
    def kept(self) -> int:
        return self.total - self.to_delete


@dataclass(frozen=True)
class RetentionPlan:
    """Ids to delete plus per-group bookkeeping. Built once per run."""

    ids_to_delete: Tuple[int, ...] = ()
    total_records: int = 0
    per_group_stats: Mapping[int, GroupStats] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def to_dict(self) -> dict:
        return {
            "ids_to_delete": list(self.ids_to_delete),
            "total_records": self.total_records,
            "per_group_stats": {
                str(gid): {"total": s.total, "to_delete": s.to_delete}
                for gid, s in self.per_group_stats.items()
            },
        }


@dataclass(frozen=True)
class DeletionResult:
    succeeded: int = 0
    failed: int = 0


class RunStore(Protocol):
    """Remote collaborator: lists records and deletes one by id."""

    def list_runs(self, older_than_days: Optional[int] = None) -> AsyncIterator[Record]: ...

    def delete_run(self, run_id: int) -> Awaitable[None]: ...
