"""Domain objects for workload placement (pure, dependency-light)."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

PLACEMENT_ANNOTATION = "dana.io/has-placement"
PLACEMENT_LABEL = "cluster.open-cluster-management.io/placement"


@dataclass(frozen=True, slots=True, order=True)
class WorkloadKey:
    """Namespaced name identifying one workload."""

    namespace: str
    name: str

    @classmethod
    def parse(cls, value: str) -> WorkloadKey:
        namespace, sep, name = value.partition("/")
        if not sep or not namespace or not name or "/" in name:
            raise ValueError(f"Expected NAMESPACE/NAME, got {value!r}")
        return cls(namespace=namespace, name=name)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True, slots=True)
class Workload:
    """A deployable unit waiting for (or holding) a target cluster."""

    key: WorkloadKey
    site: str = ""
    annotations: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    resource_version: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.annotations, MappingProxyType):
            object.__setattr__(self, "annotations", MappingProxyType(dict(self.annotations)))

    @property
    def is_placed(self) -> bool:
        return PLACEMENT_ANNOTATION in self.annotations

    @property
    def placed_cluster(self) -> str | None:
        return self.annotations.get(PLACEMENT_ANNOTATION)


@dataclass(frozen=True, slots=True)
class PlacementPolicy:
    """Named cluster-selection rule that workloads reference through ``site``."""

    name: str
    namespace: str


@dataclass(frozen=True, slots=True)
class PlacementDecision:
    """One decision object produced for a policy; lists elected clusters in order."""

    name: str
    namespace: str
    policy_name: str
    cluster_names: tuple[str, ...] = ()
