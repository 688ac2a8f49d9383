"""Read-only ports for the placement domain."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from capp_placement.domain.model import (
        PlacementDecision,
        PlacementPolicy,
        Workload,
        WorkloadKey,
    )


@runtime_checkable
class WorkloadReader(Protocol):
    """Fetch workloads by key; raises ``NotFoundError`` when absent."""

    async def get_workload(self, key: WorkloadKey) -> Workload: ...


@runtime_checkable
class PlacementReader(Protocol):
    """Read placement policies and the decisions produced for them."""

    async def get_policy(self, name: str, namespace: str) -> PlacementPolicy: ...

    async def list_decisions(
        self, policy_name: str, namespace: str
    ) -> list[PlacementDecision]: ...


__all__ = ["PlacementReader", "WorkloadReader"]
