"""Typed configuration file models for chunkforge."""

from __future__ import annotations

from typing import Literal

from core_types import BackendKind, PositiveFloat, PositiveInt
from entryconfig.models import PlovrMode
from serde_msgspec import StructBaseStrict

type LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

# Keys whose values are filesystem paths relative to the config file.
PATH_KEYS: tuple[str, ...] = ("entry_config_dir", "deps_manifest")


class RootConfigSpec(StructBaseStrict, frozen=True):
    """Root configuration payload from ``chunkforge.toml`` or ``[tool.chunkforge]``.

    Every field is optional; unset fields fall back to ``BuildConfig`` defaults.
    """

    entry_config_dir: str | None = None
    concurrency: PositiveInt | None = None
    backend: BackendKind | None = None
    backend_max_workers: PositiveInt | None = None
    deps_manifest: str | None = None
    dependency_manifest_name: str | None = None
    compiler_command: tuple[str, ...] | None = None
    compiler_timeout_s: PositiveFloat | None = None
    mode: PlovrMode | None = None
    log_level: LogLevel | None = None


__all__ = ["PATH_KEYS", "LogLevel", "RootConfigSpec"]
