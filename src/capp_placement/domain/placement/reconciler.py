"""One reconciliation pass for a single workload."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from capp_placement.domain.errors import NotFoundError

from .outcome import ReconcileResult, Requeue

if TYPE_CHECKING:
    from capp_placement.domain.model import Workload, WorkloadKey
    from capp_placement.domain.ports import DestinationWriter, WorkloadReader

    from .picker import DecisionPicker

log = getLogger(__name__)

DEFAULT_REQUEUE_AFTER = timedelta(seconds=20)


@dataclass(slots=True)
class PlacementReconciler:
    """Fetch a workload, resolve its target cluster and record the result.

    Every pass re-derives the decision from the current remote state, so running
    it again after a crash or a requeue is safe. The only mutation is the single
    destination write at the end of a successful pass, skipped when the workload
    already records that destination.
    """

    workloads: WorkloadReader
    destinations: DestinationWriter
    picker: DecisionPicker
    policy_names: tuple[str, ...]
    requeue_after: timedelta = DEFAULT_REQUEUE_AFTER

    def is_policy_reference(self, site: str) -> bool:
        return not site or site in self.policy_names

    async def reconcile(self, key: WorkloadKey) -> ReconcileResult:
        try:
            workload = await self.workloads.get_workload(key)
        except NotFoundError:
            log.debug("Workload %s no longer exists", key)
            return ReconcileResult.done()

        if self.is_policy_reference(workload.site):
            outcome = await self.picker.pick(workload, self.policy_names)
            if isinstance(outcome, Requeue):
                log.info(
                    "Placement for %s not decided yet (%s), retrying in %ss",
                    key,
                    outcome.reason,
                    self.requeue_after.total_seconds(),
                )
                return ReconcileResult.after(self.requeue_after)
            target = outcome.cluster_name
        else:
            target = workload.site

        if workload.placed_cluster == target and workload.site == target:
            log.debug("%s already placed on %s", key, target)
            return ReconcileResult.done()

        await self._write_destination(workload, target)
        return ReconcileResult.done()

    async def _write_destination(self, workload: Workload, target: str) -> None:
        try:
            await self.destinations.update_destination(workload, target)
        except Exception:
            log.exception("Unable to update destination of %s to %s", workload.key, target)
            raise
        log.info("Placed %s on cluster %s", workload.key, target)
