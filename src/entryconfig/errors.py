"""Entry config error types for resolution and chunk validation."""

from __future__ import annotations


class ConfigError(ValueError):
    """Raised when a build descriptor is malformed or contradictory."""


class InheritanceCycleError(ConfigError):
    """Raised when an ``inherits`` chain revisits a descriptor."""


__all__ = [
    "ConfigError",
    "InheritanceCycleError",
]
