from __future__ import annotations

import pytest

from capp_placement.domain.events import (
    CreateEvent,
    DeleteEvent,
    PlacementAnnotationFilter,
    UpdateEvent,
    WorkloadEvent,
    event_key,
)
from tests.helpers.placement import make_workload

UNPLACED = make_workload()
PLACED = make_workload(site="east-1", placed_on="east-1")


@pytest.mark.parametrize(
    "event",
    [CreateEvent(PLACED), UpdateEvent(old=PLACED, new=PLACED), DeleteEvent(PLACED)],
    ids=["create", "update", "delete"],
)
def test_filter_rejects_every_event_for_placed_workload(event: WorkloadEvent) -> None:
    assert PlacementAnnotationFilter().admits(event) is False


@pytest.mark.parametrize(
    "event",
    [CreateEvent(UNPLACED), UpdateEvent(old=UNPLACED, new=UNPLACED), DeleteEvent(UNPLACED)],
    ids=["create", "update", "delete"],
)
def test_filter_admits_every_event_for_unplaced_workload(event: WorkloadEvent) -> None:
    assert PlacementAnnotationFilter()(event) is True


def test_update_is_judged_by_new_object() -> None:
    event_filter = PlacementAnnotationFilter()

    assert event_filter(UpdateEvent(old=UNPLACED, new=PLACED)) is False
    assert event_filter(UpdateEvent(old=PLACED, new=UNPLACED)) is True


def test_annotation_value_does_not_matter() -> None:
    workload = make_workload(placed_on="")

    assert PlacementAnnotationFilter()(CreateEvent(workload)) is False


def test_event_key_uses_subject_workload() -> None:
    assert event_key(UpdateEvent(old=UNPLACED, new=PLACED)) == PLACED.key
