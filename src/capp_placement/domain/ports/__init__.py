"""Domain port definitions for adapters."""

from __future__ import annotations

from .reading import PlacementReader, WorkloadReader
from .writing import DestinationWriter

__all__ = [
    "DestinationWriter",
    "PlacementReader",
    "WorkloadReader",
]
