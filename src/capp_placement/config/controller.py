"""Placement controller settings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from capp_placement.domain.placement.selection import SelectionStrategy

from .env import env_float, env_int, optional_env_var, require_env_vars, split_csv
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_REQUEUE_SECONDS = 20.0
DEFAULT_WORKERS = 4
DEFAULT_RECONCILE_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    placements: tuple[str, ...]
    placements_namespace: str
    watch_namespace: str | None = None
    requeue_after: timedelta = timedelta(seconds=DEFAULT_REQUEUE_SECONDS)
    workers: int = DEFAULT_WORKERS
    selection: SelectionStrategy = SelectionStrategy.FIRST
    reconcile_timeout: timedelta | None = timedelta(seconds=DEFAULT_RECONCILE_TIMEOUT_SECONDS)

    def __post_init__(self) -> None:
        if not self.placements:
            raise ConfigurationError("At least one placement name must be configured")
        if not self.placements_namespace.strip():
            raise ConfigurationError("Placements namespace must not be blank")
        if self.workers < 1:
            raise ConfigurationError("Worker count must be at least 1")
        if self.requeue_after <= timedelta(0):
            raise ConfigurationError("Requeue delay must be positive")


def parse_selection_strategy(value: str) -> SelectionStrategy:
    try:
        return SelectionStrategy(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(strategy.value for strategy in SelectionStrategy)
        raise ConfigurationError(
            f"Unknown selection strategy {value!r} (expected one of: {choices})"
        ) from exc


def get_controller_config(*, environ: Mapping[str, str] | None = None) -> ControllerConfig:
    values = require_env_vars(("CAPP_PLACEMENTS", "CAPP_PLACEMENTS_NAMESPACE"), environ=environ)
    placements = split_csv(values["CAPP_PLACEMENTS"])

    selection = SelectionStrategy.FIRST
    raw_selection = optional_env_var("CAPP_SELECTION_STRATEGY", environ=environ)
    if raw_selection is not None:
        selection = parse_selection_strategy(raw_selection)

    requeue_seconds = env_float("CAPP_REQUEUE_SECONDS", DEFAULT_REQUEUE_SECONDS, environ=environ)
    timeout_seconds = env_float(
        "CAPP_RECONCILE_TIMEOUT_SECONDS", DEFAULT_RECONCILE_TIMEOUT_SECONDS, environ=environ
    )

    return ControllerConfig(
        placements=placements,
        placements_namespace=values["CAPP_PLACEMENTS_NAMESPACE"].strip(),
        watch_namespace=optional_env_var("CAPP_WATCH_NAMESPACE", environ=environ),
        requeue_after=timedelta(seconds=requeue_seconds),
        workers=env_int("CAPP_WORKERS", DEFAULT_WORKERS, environ=environ),
        selection=selection,
        reconcile_timeout=timedelta(seconds=timeout_seconds) if timeout_seconds > 0 else None,
    )
