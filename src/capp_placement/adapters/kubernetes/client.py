"""Typed access to Capp and OCM placement resources through ``kubernetes_asyncio``."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING, Any

from kubernetes_asyncio import client, watch
from kubernetes_asyncio.client.exceptions import ApiException
from pydantic import ValidationError

from capp_placement.config.kubernetes import load_client_configuration
from capp_placement.domain.errors import ConflictError, NotFoundError

from .schema import (
    Capp,
    CappList,
    ListMeta,
    Placement,
    PlacementDecision,
    PlacementDecisionList,
    RawWatchEvent,
    Status,
    WatchEventType,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Mapping

    from aiolimiter import AsyncLimiter

    from capp_placement.config.kubernetes import KubernetesConfig

log = getLogger(__name__)

DEFAULT_PAGE_SIZE = 500
DEFAULT_WATCH_TIMEOUT_SECONDS = 300


@dataclass(frozen=True, slots=True)
class CustomResource:
    group: str
    version: str
    plural: str
    kind: str


CAPPS = CustomResource("rcs.dana.io", "v1alpha1", "capps", "Capp")
PLACEMENTS = CustomResource(
    "cluster.open-cluster-management.io", "v1beta1", "placements", "Placement"
)
PLACEMENT_DECISIONS = CustomResource(
    "cluster.open-cluster-management.io", "v1beta1", "placementdecisions", "PlacementDecision"
)


class KubernetesAPIError(RuntimeError):
    """Raised when the API server returns an unexpected response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class ResourceExpiredError(KubernetesAPIError):
    """Raised when a watch resource version is too old to resume from."""


def _status_from_body(body: object) -> Status | None:
    if not isinstance(body, str | bytes) or not body:
        return None
    try:
        return Status.model_validate_json(body)
    except ValidationError:
        return None


def translate_api_error(
    exc: ApiException,
    *,
    kind: str,
    name: str,
    namespace: str | None,
) -> Exception:
    """Map an ``ApiException`` onto domain or adapter errors."""

    status = _status_from_body(exc.body)
    message = (status.message if status else None) or exc.reason or "no message"
    reason = status.reason if status else exc.reason
    code = exc.status
    if code == HTTPStatus.NOT_FOUND:
        return NotFoundError(kind, name, namespace)
    if code == HTTPStatus.CONFLICT:
        return ConflictError(f"{kind} {namespace}/{name}: {message}")
    if code == HTTPStatus.GONE:
        return ResourceExpiredError(message, status_code=code, reason=reason)
    return KubernetesAPIError(
        f"{kind} request failed with {code}: {message}",
        status_code=code,
        reason=reason,
    )


def _watch_error(payload: Mapping[str, object]) -> KubernetesAPIError:
    status = Status.model_validate(payload)
    if status.code == HTTPStatus.GONE:
        return ResourceExpiredError(
            status.message or "watch expired",
            status_code=status.code,
            reason=status.reason,
        )
    return KubernetesAPIError(
        f"Watch failed: {status.message}",
        status_code=status.code,
        reason=status.reason,
    )


class KubernetesClient:
    """Thin typed wrapper over the custom object endpoints the controller uses.

    ``api`` is a ``CustomObjectsApi`` (or anything with the same coroutine
    methods). Requests share one optional rate limiter; a watch takes a single
    token when it connects.
    """

    def __init__(
        self,
        api: client.CustomObjectsApi,
        *,
        limiter: AsyncLimiter | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        request_timeout: float | None = None,
        watch_factory: Callable[[], watch.Watch] = watch.Watch,
    ) -> None:
        self.api = api
        self._limiter = limiter
        self._page_size = page_size
        self._request_timeout = request_timeout
        self._watch_factory = watch_factory

    async def _throttle(self) -> None:
        if self._limiter is not None:
            await self._limiter.acquire()

    async def _call[T](
        self,
        call: Callable[[], Awaitable[T]],
        *,
        kind: str,
        name: str,
        namespace: str | None,
    ) -> T:
        await self._throttle()
        try:
            return await call()
        except ApiException as exc:
            raise translate_api_error(exc, kind=kind, name=name, namespace=namespace) from exc

    def _options(self) -> dict[str, Any]:
        if self._request_timeout is None:
            return {}
        return {"_request_timeout": self._request_timeout}

    async def _get(self, resource: CustomResource, name: str, namespace: str) -> Any:
        return await self._call(
            lambda: self.api.get_namespaced_custom_object(
                resource.group,
                resource.version,
                namespace,
                resource.plural,
                name,
                **self._options(),
            ),
            kind=resource.kind,
            name=name,
            namespace=namespace,
        )

    def _list_function(
        self, resource: CustomResource, namespace: str | None
    ) -> tuple[Callable[..., Awaitable[Any]], tuple[str, ...]]:
        if namespace is None:
            return self.api.list_cluster_custom_object, (
                resource.group,
                resource.version,
                resource.plural,
            )
        return self.api.list_namespaced_custom_object, (
            resource.group,
            resource.version,
            namespace,
            resource.plural,
        )

    async def _paginate(
        self,
        resource: CustomResource,
        *,
        namespace: str | None,
        label_selector: str | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        list_function, args = self._list_function(resource, namespace)
        continue_token: str | None = None
        while True:
            kwargs: dict[str, Any] = {"limit": self._page_size, **self._options()}
            if label_selector:
                kwargs["label_selector"] = label_selector
            if continue_token:
                kwargs["_continue"] = continue_token
            payload = await self._call(
                lambda kwargs=kwargs: list_function(*args, **kwargs),
                kind=resource.kind,
                name="*",
                namespace=namespace,
            )
            if not isinstance(payload, dict):
                raise KubernetesAPIError(f"Unexpected {resource.kind} list payload")
            yield payload
            metadata = payload.get("metadata") or {}
            continue_token = metadata.get("continue") if isinstance(metadata, dict) else None
            if not continue_token:
                return

    async def get_capp(self, name: str, namespace: str) -> Capp:
        return Capp.model_validate(await self._get(CAPPS, name, namespace))

    async def list_capps(self, namespace: str | None = None) -> CappList:
        pages = [page async for page in self._paginate(CAPPS, namespace=namespace)]
        items = [Capp.model_validate(item) for page in pages for item in page.get("items") or []]
        # the resourceVersion of the last page is the one to watch from
        metadata = pages[-1].get("metadata") or {}
        return CappList(metadata=ListMeta.model_validate(metadata), items=items)

    async def watch_capps(
        self,
        *,
        namespace: str | None = None,
        resource_version: str | None = None,
        timeout_seconds: int = DEFAULT_WATCH_TIMEOUT_SECONDS,
    ) -> AsyncIterator[RawWatchEvent]:
        """Stream watch events until the server closes the connection."""

        list_function, args = self._list_function(CAPPS, namespace)
        kwargs: dict[str, Any] = {
            "allow_watch_bookmarks": True,
            "timeout_seconds": timeout_seconds,
        }
        if resource_version:
            kwargs["resource_version"] = resource_version

        await self._throttle()
        log.debug(
            "Watching Capps in %s from resourceVersion %s", namespace or "*", resource_version
        )
        try:
            async with self._watch_factory().stream(list_function, *args, **kwargs) as stream:
                async for event in stream:
                    payload = event.get("raw_object") or event.get("object") or {}
                    raw = RawWatchEvent.model_validate({"type": event["type"], "object": payload})
                    if raw.type is WatchEventType.ERROR:
                        raise _watch_error(raw.object)
                    yield raw
        except ApiException as exc:
            raise translate_api_error(exc, kind="Capp", name="*", namespace=namespace) from exc

    async def patch_capp(self, name: str, namespace: str, patch: Mapping[str, object]) -> Capp:
        # a dict body is sent as application/merge-patch+json
        payload = await self._call(
            lambda: self.api.patch_namespaced_custom_object(
                CAPPS.group,
                CAPPS.version,
                namespace,
                CAPPS.plural,
                name,
                dict(patch),
                **self._options(),
            ),
            kind=CAPPS.kind,
            name=name,
            namespace=namespace,
        )
        return Capp.model_validate(payload)

    async def get_placement(self, name: str, namespace: str) -> Placement:
        return Placement.model_validate(await self._get(PLACEMENTS, name, namespace))

    async def list_placement_decisions(
        self,
        namespace: str,
        *,
        label_selector: str | None = None,
    ) -> PlacementDecisionList:
        items: list[PlacementDecision] = []
        async for page in self._paginate(
            PLACEMENT_DECISIONS, namespace=namespace, label_selector=label_selector
        ):
            items.extend(PlacementDecision.model_validate(item) for item in page.get("items") or [])
        return PlacementDecisionList(items=items)


@asynccontextmanager
async def connect(settings: KubernetesConfig) -> AsyncIterator[KubernetesClient]:
    """Open an API connection for the lifetime of the block."""

    configuration = await load_client_configuration(settings)
    async with client.ApiClient(configuration) as api_client:
        yield KubernetesClient(
            client.CustomObjectsApi(api_client),
            limiter=settings.rate_limiter(),
            request_timeout=settings.request_timeout,
        )
