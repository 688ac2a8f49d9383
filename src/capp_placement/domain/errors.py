"""Domain-level failures raised through the placement ports."""

from __future__ import annotations


class PlacementError(RuntimeError):
    """Base class for placement failures that abort a reconciliation pass."""


class NotFoundError(PlacementError):
    """Raised by read ports when the requested object does not exist."""

    def __init__(self, kind: str, name: str, namespace: str | None = None) -> None:
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {location} not found")
        self.kind = kind
        self.name = name
        self.namespace = namespace


class ConflictError(PlacementError):
    """Raised by write ports when the object changed since it was read."""
