"""Translate Kubernetes schemas into placement domain objects and back."""

from __future__ import annotations

from typing import TYPE_CHECKING

from capp_placement.domain.model import (
    PLACEMENT_ANNOTATION,
    PLACEMENT_LABEL,
    PlacementDecision,
    PlacementPolicy,
    Workload,
    WorkloadKey,
)

if TYPE_CHECKING:
    from . import schema


def parse_workload(capp: schema.Capp, *, default_namespace: str = "default") -> Workload:
    metadata = capp.metadata
    return Workload(
        key=WorkloadKey(namespace=metadata.namespace or default_namespace, name=metadata.name),
        site=capp.spec.site or "",
        annotations=dict(metadata.annotations),
        resource_version=metadata.resource_version,
    )


def parse_policy(placement: schema.Placement, *, namespace: str) -> PlacementPolicy:
    return PlacementPolicy(
        name=placement.metadata.name,
        namespace=placement.metadata.namespace or namespace,
    )


def parse_decision(decision: schema.PlacementDecision, *, namespace: str) -> PlacementDecision:
    metadata = decision.metadata
    return PlacementDecision(
        name=metadata.name,
        namespace=metadata.namespace or namespace,
        policy_name=metadata.labels.get(PLACEMENT_LABEL, ""),
        cluster_names=tuple(entry.cluster_name for entry in decision.status.decisions),
    )


def destination_patch(workload: Workload, cluster_name: str) -> dict[str, object]:
    """Merge patch that records ``cluster_name`` as the workload's destination.

    Site and annotation travel in one request so they are applied together. The
    resource version turns a concurrent modification into a 409 instead of a
    silent overwrite.
    """

    metadata: dict[str, object] = {"annotations": {PLACEMENT_ANNOTATION: cluster_name}}
    if workload.resource_version:
        metadata["resourceVersion"] = workload.resource_version
    return {"metadata": metadata, "spec": {"site": cluster_name}}
