from __future__ import annotations

from collections import defaultdict
from types import MappingProxyType
from typing import Dict, Iterable, List

from .types import GroupStats, Record, RetentionPlan


def select_for_deletion(records: Iterable[Record], keep_per_group: int) -> RetentionPlan:
    """Keep the newest `keep_per_group` records of every group, delete the rest.

    Records are ordered newest first by created_at; equal timestamps fall back
    to the higher id first so the plan is reproducible.
    """
    by_group: Dict[int, List[Record]] = defaultdict(list)
    total = 0
    for rec in records:
        by_group[rec.group_id].append(rec)
        total += 1

    keep = max(keep_per_group, 0)
    ids: List[int] = []
    stats: Dict[int, GroupStats] = {}

    for group_id, group in by_group.items():
        group.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        doomed = group[keep:]
        stats[group_id] = GroupStats(total=len(group), to_delete=len(doomed))
        ids.extend(r.id for r in doomed)

    return RetentionPlan(
        ids_to_delete=tuple(ids),
        total_records=total,
        per_group_stats=MappingProxyType(stats),
    )
