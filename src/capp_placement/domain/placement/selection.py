"""Deterministic selection of one cluster from a policy's decisions.

Candidates are collected from every decision object ordered by decision name,
then by position inside the decision. Blank names are skipped and repeated
names keep their first position. The strategy then picks one candidate; the
same decision state and workload key always produce the same answer.
"""

from __future__ import annotations

import hashlib
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from capp_placement.domain.model import PlacementDecision, WorkloadKey


class SelectionStrategy(StrEnum):
    FIRST = "first"
    SPREAD = "spread"


def candidate_clusters(decisions: Iterable[PlacementDecision]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for decision in sorted(decisions, key=lambda item: item.name):
        for cluster_name in decision.cluster_names:
            name = cluster_name.strip()
            if name and name not in seen:
                seen[name] = None
    return tuple(seen)


def select_cluster(
    decisions: Iterable[PlacementDecision],
    *,
    key: WorkloadKey,
    strategy: SelectionStrategy = SelectionStrategy.FIRST,
) -> str | None:
    """Return the chosen cluster name, or ``None`` when there is nothing to choose."""

    candidates = candidate_clusters(decisions)
    if not candidates:
        return None
    if strategy is SelectionStrategy.FIRST:
        return candidates[0]
    if strategy is SelectionStrategy.SPREAD:
        return candidates[_stable_index(str(key), len(candidates))]
    raise ValueError(f"Unsupported selection strategy: {strategy}")


def _stable_index(value: str, size: int) -> int:
    # hash() is salted per process; placement must agree across restarts
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") % size
