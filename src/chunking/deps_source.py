"""Dependency records loaded from pre-generated manifests."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

import msgspec

from chunking.deps_graph import Dependency
from core_types import PathLike
from entryconfig.errors import ConfigError
from entryconfig.models import EntryConfig
from serde_msgspec import describe_validation_error

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_NAME = "deps.json"

_MANIFEST_DECODER = msgspec.json.Decoder(type=list[Dependency])


class DependencySource(Protocol):
    """Provide dependency records for chunked entry configs."""

    def restore(self) -> None:
        """Prepare shared state; called once per build run."""
        ...

    def dependencies_for(self, config: EntryConfig) -> tuple[Dependency, ...]:
        """Return every dependency record reachable for ``config``."""
        ...


class ManifestDependencySource:
    """Read ``{path, provides, requires}`` manifests from disk.

    Parameters
    ----------
    base_manifest
        Optional build-wide manifest loaded by :meth:`restore`.
    manifest_name
        File name looked up in each search path of an entry config.
    """

    def __init__(
        self,
        base_manifest: PathLike | None = None,
        *,
        manifest_name: str = DEFAULT_MANIFEST_NAME,
    ) -> None:
        self.base_manifest = Path(base_manifest) if base_manifest is not None else None
        self.manifest_name = manifest_name
        self._base: tuple[Dependency, ...] | None = None

    @property
    def restored(self) -> bool:
        """Return whether the base manifest has been loaded."""
        return self._base is not None

    def restore(self) -> None:
        """Load the base manifest if it has not been loaded yet."""
        if self._base is not None:
            return
        if self.base_manifest is None:
            self._base = ()
            return
        self._base = load_manifest(self.base_manifest)
        logger.info("Restored %d dependency records from %s", len(self._base), self.base_manifest)

    def dependencies_for(self, config: EntryConfig) -> tuple[Dependency, ...]:
        """Return base records plus every search path manifest of ``config``.

        Returns
        -------
        tuple[Dependency, ...]
            Records deduplicated by path; later manifests win.
        """
        self.restore()
        by_path = {dep.path: dep for dep in self._base or ()}
        for manifest in self._search_path_manifests(config.paths):
            for dep in load_manifest(manifest):
                by_path[dep.path] = dep
        return tuple(by_path.values())

    def _search_path_manifests(self, paths: Sequence[str]) -> list[Path]:
        manifests: list[Path] = []
        for search_path in paths:
            candidate = Path(search_path) / self.manifest_name
            if candidate.is_file():
                manifests.append(candidate)
            else:
                logger.debug("No dependency manifest under %s", search_path)
        return manifests


def load_manifest(path: PathLike) -> tuple[Dependency, ...]:
    """Decode a manifest file and absolutize its record paths.

    Returns
    -------
    tuple[Dependency, ...]
        Records with absolute paths.

    Raises
    ------
    ConfigError
        Raised when the manifest is missing or malformed.
    """
    manifest = Path(path)
    try:
        raw = manifest.read_bytes()
    except FileNotFoundError as exc:
        msg = f"Dependency manifest not found: {manifest}"
        raise ConfigError(msg) from exc
    try:
        records = _MANIFEST_DECODER.decode(raw)
    except msgspec.ValidationError as exc:
        msg = f"Invalid dependency manifest {manifest}: {describe_validation_error(exc)}"
        raise ConfigError(msg) from exc
    except msgspec.DecodeError as exc:
        msg = f"Invalid dependency manifest JSON in {manifest}: {exc}"
        raise ConfigError(msg) from exc
    base_dir = manifest.parent
    return tuple(
        msgspec.structs.replace(dep, path=os.path.abspath(os.path.join(base_dir, dep.path)))
        for dep in records
    )


__all__ = [
    "DEFAULT_MANIFEST_NAME",
    "DependencySource",
    "ManifestDependencySource",
    "load_manifest",
]
