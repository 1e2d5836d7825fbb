"""Errors raised while reading kindmapper settings."""

from __future__ import annotations

from kindmapper.errors import AdapterError


class ConfigurationError(AdapterError, RuntimeError):
    """Raised when a setting holds a value the store selection cannot use."""


class MissingConfigurationError(ConfigurationError):
    """Raised when a setting the selected store needs is unset or blank."""
