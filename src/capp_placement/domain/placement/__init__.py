"""Placement decision and reconciliation core."""

from __future__ import annotations

from .outcome import OutcomeStatus, PlacementOutcome, ReconcileResult, Requeue, Resolved
from .picker import DecisionPicker, effective_policy_name
from .reconciler import DEFAULT_REQUEUE_AFTER, PlacementReconciler
from .selection import SelectionStrategy, candidate_clusters, select_cluster

__all__ = [
    "DEFAULT_REQUEUE_AFTER",
    "DecisionPicker",
    "OutcomeStatus",
    "PlacementOutcome",
    "PlacementReconciler",
    "ReconcileResult",
    "Requeue",
    "Resolved",
    "SelectionStrategy",
    "candidate_clusters",
    "effective_policy_name",
    "select_cluster",
]
