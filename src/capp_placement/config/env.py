"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


def require_env_vars(
    names: Sequence[str],
    *,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    source = os.environ if environ is None else environ
    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = source.get(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value

    if missing:
        missing_list = ", ".join(sorted(missing))
        raise MissingConfigurationError(f"Missing configuration for: {missing_list}")

    return values


def optional_env_var(name: str, *, environ: Mapping[str, str] | None = None) -> str | None:
    source = os.environ if environ is None else environ
    value = source.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def env_float(name: str, default: float, *, environ: Mapping[str, str] | None = None) -> float:
    value = optional_env_var(name, environ=environ)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc


def env_int(name: str, default: int, *, environ: Mapping[str, str] | None = None) -> int:
    value = optional_env_var(name, environ=environ)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc


def split_csv(value: str) -> tuple[str, ...]:
    """Split a comma-separated value, dropping blanks but keeping order."""

    return tuple(part.strip() for part in value.split(",") if part.strip())
