from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest
from kubernetes_asyncio.client.exceptions import ApiException

from capp_placement.adapters.kubernetes import (
    KubernetesAPIError,
    KubernetesClient,
    ResourceExpiredError,
)
from capp_placement.adapters.kubernetes.schema import WatchEventType
from capp_placement.domain.errors import ConflictError, NotFoundError
from tests.helpers.kubernetes import api_error, capp_payload, decision_payload

if TYPE_CHECKING:
    from capp_placement.adapters.kubernetes.schema import RawWatchEvent
    from tests.helpers.kubernetes import FakeCustomObjectsApi, FakeWatch

CAPP_ARGS = ("rcs.dana.io", "v1alpha1", "team-a", "capps", "web")
OCM = "cluster.open-cluster-management.io"
PLACEMENT_SELECTOR = "cluster.open-cluster-management.io/placement=primary"


def test_get_capp_parses_payload(
    custom_objects: FakeCustomObjectsApi, kube_client: KubernetesClient
) -> None:
    custom_objects.on("get_namespaced_custom_object", capp_payload(site="primary"))

    capp = asyncio.run(kube_client.get_capp("web", "team-a"))

    assert capp.metadata.name == "web"
    assert capp.metadata.resource_version == "41"
    assert capp.spec.site == "primary"
    [(args, _kwargs)] = custom_objects.calls_to("get_namespaced_custom_object")
    assert args == CAPP_ARGS


def test_get_capp_maps_404_to_not_found(
    custom_objects: FakeCustomObjectsApi, kube_client: KubernetesClient
) -> None:
    custom_objects.on("get_namespaced_custom_object", api_error(404, reason="NotFound"))

    with pytest.raises(NotFoundError, match="Capp team-a/web"):
        asyncio.run(kube_client.get_capp("web", "team-a"))


def test_server_errors_carry_status_message(
    custom_objects: FakeCustomObjectsApi, kube_client: KubernetesClient
) -> None:
    custom_objects.on("get_namespaced_custom_object", api_error(403, "forbidden: capps"))

    with pytest.raises(KubernetesAPIError) as exc:
        asyncio.run(kube_client.get_capp("web", "team-a"))

    assert exc.value.status_code == 403
    assert "forbidden: capps" in str(exc.value)


def test_error_without_status_body_uses_reason(
    custom_objects: FakeCustomObjectsApi, kube_client: KubernetesClient
) -> None:
    custom_objects.on(
        "get_namespaced_custom_object",
        ApiException(status=503, reason="Service Unavailable"),
    )

    with pytest.raises(KubernetesAPIError, match="503: Service Unavailable"):
        asyncio.run(kube_client.get_capp("web", "team-a"))


def test_patch_capp_sends_patch_body(
    custom_objects: FakeCustomObjectsApi, kube_client: KubernetesClient
) -> None:
    custom_objects.on("patch_namespaced_custom_object", capp_payload(site="east-1"))
    patch = {"spec": {"site": "east-1"}}

    capp = asyncio.run(kube_client.patch_capp("web", "team-a", patch))

    assert capp.spec.site == "east-1"
    [(args, _kwargs)] = custom_objects.calls_to("patch_namespaced_custom_object")
    assert args == (*CAPP_ARGS, patch)


def test_patch_capp_maps_409_to_conflict(
    custom_objects: FakeCustomObjectsApi, kube_client: KubernetesClient
) -> None:
    custom_objects.on("patch_namespaced_custom_object", api_error(409, "object modified"))

    with pytest.raises(ConflictError, match="object modified"):
        asyncio.run(kube_client.patch_capp("web", "team-a", {}))


def test_get_placement_reads_ocm_group(
    custom_objects: FakeCustomObjectsApi, kube_client: KubernetesClient
) -> None:
    custom_objects.on(
        "get_namespaced_custom_object",
        {"metadata": {"name": "primary", "namespace": "ocm-placements"}},
    )

    placement = asyncio.run(kube_client.get_placement("primary", "ocm-placements"))

    assert placement.metadata.name == "primary"
    [(args, _kwargs)] = custom_objects.calls_to("get_namespaced_custom_object")
    assert args == (OCM, "v1beta1", "ocm-placements", "placements", "primary")


def test_list_placement_decisions_filters_by_label_and_follows_pages(
    custom_objects: FakeCustomObjectsApi, kube_client: KubernetesClient
) -> None:
    custom_objects.on(
        "list_namespaced_custom_object",
        {
            "metadata": {"continue": "page-2"},
            "items": [decision_payload("primary-decision-1", "primary", "east-1")],
        },
        {
            "metadata": {},
            "items": [decision_payload("primary-decision-2", "primary", "west-1")],
        },
    )

    listing = asyncio.run(
        kube_client.list_placement_decisions("ocm-placements", label_selector=PLACEMENT_SELECTOR)
    )

    clusters = [
        decision.cluster_name for item in listing.items for decision in item.status.decisions
    ]
    assert clusters == ["east-1", "west-1"]
    (first_args, first), (_second_args, second) = custom_objects.calls_to(
        "list_namespaced_custom_object"
    )
    assert first_args == (OCM, "v1beta1", "ocm-placements", "placementdecisions")
    assert first["label_selector"] == PLACEMENT_SELECTOR
    assert "_continue" not in first
    assert second["_continue"] == "page-2"


def test_list_capps_across_namespaces_uses_cluster_listing(
    custom_objects: FakeCustomObjectsApi, kube_client: KubernetesClient
) -> None:
    custom_objects.on(
        "list_cluster_custom_object",
        {"metadata": {"resourceVersion": "90", "continue": "next"}, "items": [capp_payload("a")]},
        {"metadata": {"resourceVersion": "91"}, "items": [capp_payload("b")]},
    )

    listing = asyncio.run(kube_client.list_capps())

    assert [capp.metadata.name for capp in listing.items] == ["a", "b"]
    assert listing.metadata.resource_version == "91"
    [(args, _kwargs), _] = custom_objects.calls_to("list_cluster_custom_object")
    assert args == ("rcs.dana.io", "v1alpha1", "capps")


def test_watch_capps_streams_events_from_resource_version(
    custom_objects: FakeCustomObjectsApi,
    fake_watch: FakeWatch,
    kube_client: KubernetesClient,
) -> None:
    added = capp_payload(resource_version="42")
    fake_watch.script = [
        {"type": "ADDED", "object": added, "raw_object": added},
        {"type": "BOOKMARK", "object": {"metadata": {"resourceVersion": "43"}}},
    ]

    async def scenario() -> list[RawWatchEvent]:
        return [event async for event in kube_client.watch_capps(resource_version="41")]

    events = asyncio.run(scenario())

    assert [event.type for event in events] == [WatchEventType.ADDED, WatchEventType.BOOKMARK]
    assert events[0].object["metadata"] == added["metadata"]
    [(func, args, kwargs)] = fake_watch.streams
    assert func == custom_objects.list_cluster_custom_object
    assert args == ("rcs.dana.io", "v1alpha1", "capps")
    assert kwargs["resource_version"] == "41"
    assert kwargs["allow_watch_bookmarks"] is True


def test_watch_capps_raises_on_expired_error_event(
    fake_watch: FakeWatch, kube_client: KubernetesClient
) -> None:
    fake_watch.script = [
        {
            "type": "ERROR",
            "object": {"kind": "Status", "code": 410, "reason": "Expired", "message": "too old"},
        }
    ]

    async def scenario() -> None:
        async for _event in kube_client.watch_capps(namespace="team-a", resource_version="1"):
            pass

    with pytest.raises(ResourceExpiredError, match="too old"):
        asyncio.run(scenario())


def test_watch_capps_maps_gone_exception_to_expired(
    fake_watch: FakeWatch, kube_client: KubernetesClient
) -> None:
    fake_watch.script = [ApiException(status=410, reason="Expired: too old resource version")]

    async def scenario() -> None:
        async for _event in kube_client.watch_capps(resource_version="1"):
            pass

    with pytest.raises(ResourceExpiredError) as exc:
        asyncio.run(scenario())
    assert exc.value.status_code == 410


@dataclass
class CountingLimiter:
    acquired: int = 0

    async def acquire(self) -> None:
        self.acquired += 1


def test_every_request_takes_a_rate_limit_token(custom_objects: FakeCustomObjectsApi) -> None:
    limiter = CountingLimiter()
    client = KubernetesClient(custom_objects, limiter=limiter)  # type: ignore[arg-type]
    custom_objects.on("get_namespaced_custom_object", capp_payload())
    custom_objects.on(
        "list_namespaced_custom_object",
        {"metadata": {"continue": "more"}, "items": []},
        {"metadata": {}, "items": []},
    )

    async def scenario() -> None:
        await client.get_capp("web", "team-a")
        await client.list_placement_decisions("ocm-placements")

    asyncio.run(scenario())

    assert limiter.acquired == 3
