"""Application wiring: build the reconciler and controller from configuration."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from capp_placement.adapters.kubernetes import (
    KubernetesClient,
    KubernetesGateway,
    WorkloadWatcher,
    connect,
)
from capp_placement.config import get_controller_config, get_kubernetes_config
from capp_placement.controller import Controller
from capp_placement.domain.events import PlacementAnnotationFilter
from capp_placement.domain.placement import DecisionPicker, PlacementReconciler

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractAsyncContextManager

    from capp_placement.config import ControllerConfig, KubernetesConfig
    from capp_placement.domain.model import WorkloadKey
    from capp_placement.domain.placement import ReconcileResult

type ClientFactory = Callable[[KubernetesConfig], AbstractAsyncContextManager[KubernetesClient]]

log = getLogger(__name__)


def build_reconciler(gateway: KubernetesGateway, config: ControllerConfig) -> PlacementReconciler:
    picker = DecisionPicker(
        reader=gateway,
        namespace=config.placements_namespace,
        strategy=config.selection,
    )
    return PlacementReconciler(
        workloads=gateway,
        destinations=gateway,
        picker=picker,
        policy_names=config.placements,
        requeue_after=config.requeue_after,
    )


def build_controller(client: KubernetesClient, config: ControllerConfig) -> Controller:
    """Register the reconciler for Capp events behind the placement filter."""

    gateway = KubernetesGateway(client)
    watcher = WorkloadWatcher(source=client, namespace=config.watch_namespace)
    return Controller(
        reconciler=build_reconciler(gateway, config),
        events=watcher.events,
        event_filter=PlacementAnnotationFilter(),
        workers=config.workers,
        reconcile_timeout=config.reconcile_timeout,
    )


async def run_controller_async(
    config: ControllerConfig,
    kubernetes: KubernetesConfig,
    *,
    client_factory: ClientFactory = connect,
) -> None:
    async with client_factory(kubernetes) as client:
        await build_controller(client, config).run()


async def reconcile_once_async(
    key: WorkloadKey,
    config: ControllerConfig,
    kubernetes: KubernetesConfig,
    *,
    client_factory: ClientFactory = connect,
) -> ReconcileResult:
    async with client_factory(kubernetes) as client:
        reconciler = build_reconciler(KubernetesGateway(client), config)
        return await reconciler.reconcile(key)


def run_placement_controller(
    *,
    config: ControllerConfig | None = None,
    kubernetes: KubernetesConfig | None = None,
) -> None:
    """Run the placement controller until interrupted."""

    effective_config = config or get_controller_config()
    effective_kubernetes = kubernetes or get_kubernetes_config()
    log.info(
        "Placing Capps with policies %s from namespace %s (credentials: %s)",
        ", ".join(effective_config.placements),
        effective_config.placements_namespace,
        effective_kubernetes.source,
    )
    asyncio.run(run_controller_async(effective_config, effective_kubernetes))


def reconcile_workload(
    key: WorkloadKey,
    *,
    config: ControllerConfig | None = None,
    kubernetes: KubernetesConfig | None = None,
) -> ReconcileResult:
    """Run a single reconciliation pass for ``key``."""

    effective_config = config or get_controller_config()
    effective_kubernetes = kubernetes or get_kubernetes_config()
    result = asyncio.run(reconcile_once_async(key, effective_config, effective_kubernetes))
    if result.requeue_after is not None:
        log.info(
            f"No placement decision for {key} yet; the controller would retry in "
            f"{result.requeue_after.total_seconds():.0f}s"
        )
    return result
