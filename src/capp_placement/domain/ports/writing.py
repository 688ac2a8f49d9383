"""Mutation port for recording placement results."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from capp_placement.domain.model import Workload


@runtime_checkable
class DestinationWriter(Protocol):
    """Set the resolved cluster and the placement annotation in one write."""

    async def update_destination(self, workload: Workload, cluster_name: str) -> None: ...


__all__ = ["DestinationWriter"]
