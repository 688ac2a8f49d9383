"""Workload placement domain."""

from __future__ import annotations

from .errors import ConflictError, NotFoundError, PlacementError
from .events import (
    CreateEvent,
    DeleteEvent,
    PlacementAnnotationFilter,
    UpdateEvent,
    WorkloadEvent,
)
from .model import (
    PLACEMENT_ANNOTATION,
    PLACEMENT_LABEL,
    PlacementDecision,
    PlacementPolicy,
    Workload,
    WorkloadKey,
)

__all__ = [
    "PLACEMENT_ANNOTATION",
    "PLACEMENT_LABEL",
    "ConflictError",
    "CreateEvent",
    "DeleteEvent",
    "NotFoundError",
    "PlacementAnnotationFilter",
    "PlacementDecision",
    "PlacementError",
    "PlacementPolicy",
    "UpdateEvent",
    "Workload",
    "WorkloadEvent",
    "WorkloadKey",
]
