"""Kubernetes adapter for the placement controller."""

from __future__ import annotations

from .client import KubernetesAPIError, KubernetesClient, ResourceExpiredError, connect
from .gateway import KubernetesGateway
from .watcher import WorkloadWatcher

__all__ = [
    "KubernetesAPIError",
    "KubernetesClient",
    "KubernetesGateway",
    "ResourceExpiredError",
    "WorkloadWatcher",
    "connect",
]
