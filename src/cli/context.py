"""Per-invocation settings shared by chunkforge commands."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from cli.config_loader import (
    build_config_from_contents,
    default_config_contents,
    load_effective_config_with_sources,
)
from cli.config_source import ConfigSource, ConfigValue, ConfigWithSources
from core_types import JsonValue
from engine.config import BuildConfig


@dataclass(frozen=True)
class RunContext:
    """Configuration resolved once by the launcher and injected into commands.

    Commands invoked without a context resolve one with :meth:`discover`.
    """

    log_level: str = "INFO"
    config_sources: ConfigWithSources = field(default_factory=ConfigWithSources)

    @classmethod
    def discover(
        cls,
        config_file: str | None = None,
        *,
        log_level: str | None = None,
    ) -> RunContext:
        """Resolve configuration files and the effective log level.

        ``log_level`` wins over the ``log_level`` key of the config files.

        Returns
        -------
        RunContext
            Context backed by the discovered configuration.
        """
        sources = load_effective_config_with_sources(config_file)
        file_level = sources.to_flat_dict().get("log_level")
        resolved = log_level or (file_level if isinstance(file_level, str) else "INFO")
        return cls(log_level=resolved, config_sources=sources)

    @classmethod
    def from_contents(
        cls,
        contents: Mapping[str, JsonValue],
        *,
        log_level: str = "INFO",
    ) -> RunContext:
        """Wrap already resolved values, attributing them to the command line.

        Returns
        -------
        RunContext
            Context backed by ``contents``.
        """
        values = {
            key: ConfigValue(key=key, value=value, source=ConfigSource.CLI)
            for key, value in contents.items()
        }
        return cls(log_level=log_level, config_sources=ConfigWithSources(values=values))

    @property
    def config_contents(self) -> dict[str, JsonValue]:
        """Plain configuration values without source tracking."""
        return self.config_sources.to_flat_dict()

    def build_config(self, **overrides: object) -> BuildConfig:
        """Return the validated build configuration plus non-``None`` overrides.

        Returns
        -------
        BuildConfig
            Build settings for this invocation.
        """
        return build_config_from_contents(self.config_contents, **overrides)

    def sources_with_defaults(self) -> ConfigWithSources:
        """Return the tracked values with every unset key at its default.

        Returns
        -------
        ConfigWithSources
            Complete configuration for display.
        """
        return self.config_sources.with_defaults(default_config_contents())


def context_or_discover(run_context: RunContext | None) -> RunContext:
    """Return ``run_context``, or a context discovered from the working directory.

    Returns
    -------
    RunContext
        Context for the running command.
    """
    return run_context if run_context is not None else RunContext.discover()


__all__ = ["RunContext", "context_or_discover"]
