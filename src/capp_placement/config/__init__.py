"""Application configuration helpers."""

from __future__ import annotations

from .controller import ControllerConfig, get_controller_config, parse_selection_strategy
from .env import require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .kubernetes import KubernetesConfig, get_kubernetes_config, load_client_configuration
from .logging import configure_logging

__all__ = [
    "ConfigurationError",
    "ControllerConfig",
    "KubernetesConfig",
    "MissingConfigurationError",
    "configure_logging",
    "get_controller_config",
    "get_kubernetes_config",
    "load_client_configuration",
    "parse_selection_strategy",
    "require_env_vars",
]
