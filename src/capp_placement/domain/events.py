"""Typed workload lifecycle events and the placement event filter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import Workload, WorkloadKey


@dataclass(frozen=True, slots=True)
class CreateEvent:
    workload: Workload

    @property
    def subject(self) -> Workload:
        return self.workload


@dataclass(frozen=True, slots=True)
class UpdateEvent:
    old: Workload
    new: Workload

    @property
    def subject(self) -> Workload:
        return self.new


@dataclass(frozen=True, slots=True)
class DeleteEvent:
    workload: Workload

    @property
    def subject(self) -> Workload:
        return self.workload


type WorkloadEvent = CreateEvent | UpdateEvent | DeleteEvent


def event_key(event: WorkloadEvent) -> WorkloadKey:
    return event.subject.key


@dataclass(frozen=True, slots=True)
class PlacementAnnotationFilter:
    """Admit events only for workloads that have not been placed yet.

    Create, update and delete events are treated the same way; for updates the
    new object decides. Once the placement annotation is written, every later
    event for that workload is rejected, which is what stops the controller
    from resolving the same workload again.
    """

    def admits(self, event: WorkloadEvent) -> bool:
        return not event.subject.is_placed

    def __call__(self, event: WorkloadEvent) -> bool:
        return self.admits(event)
