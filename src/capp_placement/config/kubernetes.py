"""Kubernetes API connection settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from aiolimiter import AsyncLimiter
from kubernetes_asyncio import client
from kubernetes_asyncio import config as kube_config

from .env import env_float, optional_env_var
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

DEFAULT_QPS = 20.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class KubernetesConfig:
    """Where to find API credentials and how hard to drive the API server.

    With neither ``kubeconfig`` nor ``context`` set, the in-cluster service
    account is tried first and the default kubeconfig second.
    """

    kubeconfig: str | None = None
    context: str | None = None
    qps: float = DEFAULT_QPS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    @property
    def source(self) -> str:
        if self.kubeconfig is None and self.context is None:
            return "in-cluster service account or default kubeconfig"
        return f"kubeconfig {self.kubeconfig or '(default)'} context {self.context or '(current)'}"

    def rate_limiter(self) -> AsyncLimiter | None:
        if self.qps <= 0:
            return None
        return AsyncLimiter(max_rate=self.qps, time_period=1.0)


def get_kubernetes_config(*, environ: Mapping[str, str] | None = None) -> KubernetesConfig:
    source = os.environ if environ is None else environ
    qps = env_float("KUBE_QPS", DEFAULT_QPS, environ=source)
    if qps < 0:
        raise ConfigurationError("KUBE_QPS must be non-negative")
    request_timeout = env_float(
        "KUBE_REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS, environ=source
    )
    if request_timeout <= 0:
        raise ConfigurationError("KUBE_REQUEST_TIMEOUT_SECONDS must be positive")
    return KubernetesConfig(
        kubeconfig=optional_env_var("KUBECONFIG", environ=source),
        context=optional_env_var("KUBE_CONTEXT", environ=source),
        qps=qps,
        request_timeout=request_timeout,
    )


async def load_client_configuration(settings: KubernetesConfig) -> client.Configuration:
    """Resolve credentials into a fresh client configuration.

    The process-wide default configuration is left untouched.
    """

    configuration = client.Configuration()
    if settings.kubeconfig is None and settings.context is None:
        try:
            kube_config.load_incluster_config(client_configuration=configuration)
        except kube_config.ConfigException:
            log.debug("No in-cluster service account, falling back to kubeconfig")
        else:
            log.debug("Using in-cluster service account")
            return configuration

    try:
        await kube_config.load_kube_config(
            config_file=settings.kubeconfig,
            context=settings.context,
            client_configuration=configuration,
            persist_config=False,
        )
    except (kube_config.ConfigException, OSError) as exc:
        raise ConfigurationError(f"Unable to load Kubernetes credentials: {exc}") from exc
    return configuration
