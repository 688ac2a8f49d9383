"""Resolve a workload's policy reference into a concrete cluster name."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .outcome import PlacementOutcome, Requeue, Resolved
from .selection import SelectionStrategy, select_cluster

if TYPE_CHECKING:
    from collections.abc import Sequence

    from capp_placement.domain.model import Workload
    from capp_placement.domain.ports import PlacementReader

log = getLogger(__name__)


def effective_policy_name(workload: Workload, policy_names: Sequence[str]) -> str:
    """The workload's own ``site`` if set, otherwise the first configured policy."""

    if workload.site:
        return workload.site
    if not policy_names:
        raise ValueError("No placement policies configured")
    return policy_names[0]


@dataclass(slots=True)
class DecisionPicker:
    """Pick a target cluster from the decisions published for a placement policy.

    A missing policy is a hard failure and propagates. A policy without any
    decision yet, or whose decisions name no cluster, yields ``Requeue``: the
    policy evaluation runs asynchronously and will catch up.
    """

    reader: PlacementReader
    namespace: str
    strategy: SelectionStrategy = SelectionStrategy.FIRST

    async def pick(self, workload: Workload, policy_names: Sequence[str]) -> PlacementOutcome:
        policy_name = effective_policy_name(workload, policy_names)
        policy = await self.reader.get_policy(policy_name, self.namespace)

        decisions = await self.reader.list_decisions(policy.name, self.namespace)
        if not decisions:
            log.info(
                "No PlacementDecision for %s/%s yet (workload %s)",
                self.namespace,
                policy.name,
                workload.key,
            )
            return Requeue(reason="no placement decision", policy_name=policy.name)

        cluster_name = select_cluster(decisions, key=workload.key, strategy=self.strategy)
        if cluster_name is None:
            log.info(
                "PlacementDecisions for %s/%s list no cluster yet (workload %s)",
                self.namespace,
                policy.name,
                workload.key,
            )
            return Requeue(reason="no cluster in placement decisions", policy_name=policy.name)

        log.debug("Policy %s elected cluster %s for %s", policy.name, cluster_name, workload.key)
        return Resolved(cluster_name=cluster_name, policy_name=policy.name)
