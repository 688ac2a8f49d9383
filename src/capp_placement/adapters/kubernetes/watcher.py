"""Turn the Capp list/watch stream into typed workload events."""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from capp_placement.domain.events import CreateEvent, DeleteEvent, UpdateEvent

from .client import ResourceExpiredError
from .schema import Capp, WatchEventType
from .translator import parse_workload

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable

    from capp_placement.domain.events import WorkloadEvent
    from capp_placement.domain.model import Workload, WorkloadKey

    from .schema import CappList, RawWatchEvent

log = getLogger(__name__)

DEFAULT_RECONNECT_DELAY_SECONDS = 1.0
MAX_RECONNECT_DELAY_SECONDS = 30.0


class CappSource(Protocol):
    async def list_capps(self, namespace: str | None = None) -> CappList: ...

    def watch_capps(
        self,
        *,
        namespace: str | None = None,
        resource_version: str | None = None,
    ) -> AsyncGenerator[RawWatchEvent]: ...


@dataclass(slots=True)
class WorkloadWatcher:
    """List then watch Capps, keeping the last seen object per key.

    The cache is what turns a bare ``MODIFIED`` notification into an update
    event carrying both the old and the new workload. An expired resource
    version triggers a full relist, which is diffed against the cache so no
    create or delete is lost across the gap. Any other failure, including a
    missing Capp CRD or a malformed object, backs off exponentially and resumes
    from the last resource version seen.
    """

    source: CappSource
    namespace: str | None = None
    reconnect_delay: float = DEFAULT_RECONNECT_DELAY_SECONDS
    max_reconnect_delay: float = MAX_RECONNECT_DELAY_SECONDS
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    _cache: dict[WorkloadKey, Workload] = field(default_factory=dict, init=False)

    def known(self) -> dict[WorkloadKey, Workload]:
        return dict(self._cache)

    async def events(self) -> AsyncIterator[WorkloadEvent]:
        resource_version: str | None = None
        delay = self.reconnect_delay
        while True:
            try:
                if resource_version is None:
                    listing = await self.source.list_capps(self.namespace)
                    for event in self._resync(listing):
                        yield event
                    resource_version = listing.metadata.resource_version

                stream = self.source.watch_capps(
                    namespace=self.namespace,
                    resource_version=resource_version,
                )
                async with aclosing(stream):
                    async for raw in stream:
                        resource_version = _resource_version_of(raw) or resource_version
                        event = self._apply(raw)
                        delay = self.reconnect_delay
                        if event is not None:
                            yield event
                # server-side watch timeout; resume from the last version seen
                await self.sleep(0)
            except ResourceExpiredError:
                log.info("Capp watch expired at resourceVersion %s, relisting", resource_version)
                resource_version = None
            except Exception as exc:  # noqa: BLE001
                log.warning(
                    "Capp list/watch failed (%s: %s), reconnecting in %.1fs",
                    type(exc).__name__,
                    exc,
                    delay,
                )
                await self.sleep(delay)
                delay = min(delay * 2, self.max_reconnect_delay)

    def _resync(self, listing: CappList) -> list[WorkloadEvent]:
        events: list[WorkloadEvent] = []
        fresh: dict[WorkloadKey, Workload] = {}
        for capp in listing.items:
            workload = parse_workload(capp, default_namespace=self.namespace or "default")
            fresh[workload.key] = workload
            previous = self._cache.get(workload.key)
            if previous is None:
                events.append(CreateEvent(workload))
            elif previous.resource_version != workload.resource_version:
                events.append(UpdateEvent(old=previous, new=workload))
        events.extend(
            DeleteEvent(workload) for key, workload in self._cache.items() if key not in fresh
        )
        self._cache = fresh
        return events

    def _apply(self, raw: RawWatchEvent) -> WorkloadEvent | None:
        if raw.type is WatchEventType.BOOKMARK:
            return None
        workload = parse_workload(
            Capp.model_validate(raw.object),
            default_namespace=self.namespace or "default",
        )
        if raw.type is WatchEventType.ADDED:
            self._cache[workload.key] = workload
            return CreateEvent(workload)
        if raw.type is WatchEventType.MODIFIED:
            previous = self._cache.get(workload.key, workload)
            self._cache[workload.key] = workload
            return UpdateEvent(old=previous, new=workload)
        if raw.type is WatchEventType.DELETED:
            self._cache.pop(workload.key, None)
            return DeleteEvent(workload)
        return None


def _resource_version_of(raw: RawWatchEvent) -> str | None:
    metadata = raw.object.get("metadata")
    if not isinstance(metadata, dict):
        return None
    value = metadata.get("resourceVersion")
    return value if isinstance(value, str) and value else None
