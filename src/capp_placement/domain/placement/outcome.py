"""Result variants produced while resolving a workload's target cluster."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import StrEnum
from typing import Literal


class OutcomeStatus(StrEnum):
    RESOLVED = "resolved"
    REQUEUE = "requeue"


@dataclass(frozen=True, slots=True, kw_only=True)
class Resolved:
    """A concrete cluster was chosen."""

    cluster_name: str
    policy_name: str | None = None
    status: Literal[OutcomeStatus.RESOLVED] = OutcomeStatus.RESOLVED

    def __post_init__(self) -> None:
        if not self.cluster_name:
            raise ValueError("Resolved outcome requires a cluster name")


@dataclass(frozen=True, slots=True, kw_only=True)
class Requeue:
    """No decision is available yet; try again later without mutating anything."""

    reason: str
    policy_name: str | None = None
    status: Literal[OutcomeStatus.REQUEUE] = OutcomeStatus.REQUEUE


# Failures are raised, not returned.
type PlacementOutcome = Resolved | Requeue


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """What the host should do with a key after one reconciliation pass."""

    requeue_after: timedelta | None = None

    @classmethod
    def done(cls) -> ReconcileResult:
        return cls()

    @classmethod
    def after(cls, delay: timedelta) -> ReconcileResult:
        return cls(requeue_after=delay)

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None
