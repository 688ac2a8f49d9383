"""Pydantic schemas for the Kubernetes resources the controller reads and writes."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)


class KubernetesBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Kubernetes %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class ObjectMeta(KubernetesBaseModel):
    name: str
    namespace: str | None = None
    resource_version: str | None = Field(default=None, alias="resourceVersion")
    uid: str | None = None
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


class ListMeta(KubernetesBaseModel):
    resource_version: str | None = Field(default=None, alias="resourceVersion")
    continue_token: str | None = Field(default=None, alias="continue")


class CappSpec(KubernetesBaseModel):
    site: str = ""


class Capp(KubernetesBaseModel):
    api_version: str | None = Field(default=None, alias="apiVersion")
    kind: str | None = None
    metadata: ObjectMeta
    spec: CappSpec = Field(default_factory=CappSpec)


class CappList(KubernetesBaseModel):
    metadata: ListMeta = Field(default_factory=ListMeta)
    items: list[Capp] = Field(default_factory=list)


class Placement(KubernetesBaseModel):
    api_version: str | None = Field(default=None, alias="apiVersion")
    kind: str | None = None
    metadata: ObjectMeta


class ClusterDecision(KubernetesBaseModel):
    cluster_name: str = Field(default="", alias="clusterName")
    reason: str | None = None


class PlacementDecisionStatus(KubernetesBaseModel):
    decisions: list[ClusterDecision] = Field(default_factory=list)


class PlacementDecision(KubernetesBaseModel):
    metadata: ObjectMeta
    status: PlacementDecisionStatus = Field(default_factory=PlacementDecisionStatus)


class PlacementDecisionList(KubernetesBaseModel):
    metadata: ListMeta = Field(default_factory=ListMeta)
    items: list[PlacementDecision] = Field(default_factory=list)


class Status(KubernetesBaseModel):
    """The ``Status`` object the API server returns for failures."""

    message: str | None = None
    reason: str | None = None
    code: int | None = None


class WatchEventType(StrEnum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"
    ERROR = "ERROR"


class RawWatchEvent(KubernetesBaseModel):
    type: WatchEventType
    object: dict[str, object]
