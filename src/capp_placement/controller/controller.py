"""Host loop: feed filtered workload events to reconciliation workers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from capp_placement.domain.events import event_key

from .workqueue import QueueShutDownError, WorkQueue

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable
    from datetime import timedelta

    from capp_placement.domain.events import WorkloadEvent
    from capp_placement.domain.model import WorkloadKey
    from capp_placement.domain.placement import ReconcileResult

log = getLogger(__name__)


class Reconciler(Protocol):
    async def reconcile(self, key: WorkloadKey) -> ReconcileResult: ...


type EventSource = Callable[[], AsyncIterator[WorkloadEvent]]
type EventFilter = Callable[[WorkloadEvent], bool]


@dataclass(slots=True)
class Controller:
    """Run the watch pump and ``workers`` reconciliation tasks until cancelled.

    Hard failures are retried with the queue's per-key exponential backoff; a
    result asking for a revisit is scheduled with its fixed delay. Cancelling
    ``run`` cancels every in-flight API call.
    """

    reconciler: Reconciler
    events: EventSource
    event_filter: EventFilter
    workers: int = 4
    reconcile_timeout: timedelta | None = None
    queue: WorkQueue[WorkloadKey] = field(default_factory=WorkQueue)

    async def run(self) -> None:
        log.info("Starting placement controller with %d workers", self.workers)
        try:
            async with asyncio.TaskGroup() as group:
                group.create_task(self._pump(), name="capp-watch")
                for index in range(self.workers):
                    group.create_task(self._worker(), name=f"capp-worker-{index}")
        finally:
            self.queue.shutdown()
            log.info("Placement controller stopped")

    def enqueue(self, event: WorkloadEvent) -> bool:
        if not self.event_filter(event):
            log.debug("Ignoring %s for %s", type(event).__name__, event_key(event))
            return False
        self.queue.add(event_key(event))
        return True

    async def process(self, key: WorkloadKey) -> ReconcileResult | None:
        """Reconcile ``key`` once and schedule whatever follow-up it needs."""

        try:
            if self.reconcile_timeout is None:
                result = await self.reconciler.reconcile(key)
            else:
                async with asyncio.timeout(self.reconcile_timeout.total_seconds()):
                    result = await self.reconciler.reconcile(key)
        except Exception:
            log.exception(
                "Reconciling %s failed (attempt %d)", key, self.queue.num_requeues(key) + 1
            )
            self.queue.add_rate_limited(key)
            return None

        self.queue.forget(key)
        if result.requeue_after is not None:
            self.queue.add_after(key, result.requeue_after)
        return result

    async def _pump(self) -> None:
        async for event in self.events():
            self.enqueue(event)

    async def _worker(self) -> None:
        while True:
            try:
                key = await self.queue.get()
            except QueueShutDownError:
                return
            try:
                await self.process(key)
            finally:
                self.queue.done(key)
