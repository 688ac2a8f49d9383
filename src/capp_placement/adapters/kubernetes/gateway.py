"""Kubernetes-backed implementation of the placement ports."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from capp_placement.domain.model import PLACEMENT_LABEL

from .translator import destination_patch, parse_decision, parse_policy, parse_workload

if TYPE_CHECKING:
    from capp_placement.domain.model import (
        PlacementDecision,
        PlacementPolicy,
        Workload,
        WorkloadKey,
    )

    from .client import KubernetesClient

log = getLogger(__name__)


@dataclass(slots=True)
class KubernetesGateway:
    """Serve the read and write ports from one open ``KubernetesClient``."""

    client: KubernetesClient

    async def get_workload(self, key: WorkloadKey) -> Workload:
        capp = await self.client.get_capp(key.name, key.namespace)
        return parse_workload(capp, default_namespace=key.namespace)

    async def get_policy(self, name: str, namespace: str) -> PlacementPolicy:
        placement = await self.client.get_placement(name, namespace)
        return parse_policy(placement, namespace=namespace)

    async def list_decisions(self, policy_name: str, namespace: str) -> list[PlacementDecision]:
        decision_list = await self.client.list_placement_decisions(
            namespace,
            label_selector=f"{PLACEMENT_LABEL}={policy_name}",
        )
        return [parse_decision(item, namespace=namespace) for item in decision_list.items]

    async def update_destination(self, workload: Workload, cluster_name: str) -> None:
        key = workload.key
        patch = destination_patch(workload, cluster_name)
        await self.client.patch_capp(key.name, key.namespace, patch)
        log.debug("Patched %s with destination %s", key, cluster_name)
