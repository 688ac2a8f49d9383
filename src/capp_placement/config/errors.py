"""Errors raised while reading controller and API connection settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A setting is present but unusable, or API credentials cannot be loaded."""


class MissingConfigurationError(ConfigurationError):
    """One or more required ``CAPP_*`` settings are absent or blank."""
