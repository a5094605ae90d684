"""Where each effective configuration value came from."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import cast

from core_types import JsonValue
from serde_msgspec import StructBaseStrict, to_builtins


class ConfigSource(StrEnum):
    """Origin of a configuration value."""

    CLI = "cli"
    CONFIG_FILE = "config_file"
    DEFAULT = "default"


class ConfigValue(StructBaseStrict, frozen=True):
    """One configuration value; ``location`` names the file and table it was read from."""

    key: str
    value: JsonValue
    source: ConfigSource
    location: str | None = None


@dataclass(frozen=True)
class ConfigWithSources:
    """Effective configuration keyed by setting name."""

    values: Mapping[str, ConfigValue] = field(default_factory=dict)

    def with_defaults(self, defaults: Mapping[str, JsonValue]) -> ConfigWithSources:
        """Fill keys missing from this configuration with ``defaults``.

        Returns
        -------
        ConfigWithSources
            Configuration covering every default key.
        """
        merged = {
            key: ConfigValue(key=key, value=value, source=ConfigSource.DEFAULT)
            for key, value in defaults.items()
        }
        merged.update(self.values)
        return ConfigWithSources(values=merged)

    def to_display_dict(self) -> dict[str, dict[str, object]]:
        """Return each value with its source for ``config show --with-sources``."""
        display: dict[str, dict[str, object]] = {}
        for key, cv in self.values.items():
            entry = cast("dict[str, object]", to_builtins(cv))
            del entry["key"]
            display[key] = entry
        return display

    def to_flat_dict(self) -> dict[str, JsonValue]:
        """Return plain values, as the build configuration reads them."""
        return {key: cv.value for key, cv in self.values.items()}


__all__ = ["ConfigSource", "ConfigValue", "ConfigWithSources"]
