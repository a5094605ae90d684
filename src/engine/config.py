"""Project-level build configuration."""

from __future__ import annotations

import msgspec

from chunking.deps_source import DEFAULT_MANIFEST_NAME
from compiler.runner import DEFAULT_COMPILER_COMMAND
from core_types import BackendKind, PositiveFloat, PositiveInt
from entryconfig.models import PlovrMode
from serde_msgspec import StructBaseStrict


class BuildConfig(StructBaseStrict, frozen=True):
    """Settings shared by every unit of a build run."""

    entry_config_dir: str | None = None
    concurrency: PositiveInt = 1
    backend: BackendKind = "local"
    backend_max_workers: PositiveInt | None = None
    deps_manifest: str | None = None
    dependency_manifest_name: str = DEFAULT_MANIFEST_NAME
    compiler_command: tuple[str, ...] = DEFAULT_COMPILER_COMMAND
    compiler_timeout_s: PositiveFloat | None = None
    mode: PlovrMode | None = None

    def with_overrides(self, **overrides: object) -> BuildConfig:
        """Return a copy with every non-``None`` override applied.

        Returns
        -------
        BuildConfig
            Updated configuration.
        """
        changes = {key: value for key, value in overrides.items() if value is not None}
        if not changes:
            return self
        return msgspec.structs.replace(self, **changes)


__all__ = ["BuildConfig"]
