"""Controller runtime: work queue, backoff and worker loop."""

from __future__ import annotations

from .backoff import ExponentialBackoff
from .controller import Controller, Reconciler
from .workqueue import QueueShutDownError, WorkQueue

__all__ = [
    "Controller",
    "ExponentialBackoff",
    "QueueShutDownError",
    "Reconciler",
    "WorkQueue",
]
