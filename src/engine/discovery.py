"""Locate entry config descriptors on disk."""

from __future__ import annotations

from pathlib import Path

from core_types import PathLike
from entryconfig.errors import ConfigError

DESCRIPTOR_SUFFIX = ".json"


def find_entry_configs(entry_config_dir: PathLike) -> list[Path]:
    """Return every ``*.json`` descriptor under a directory, sorted by path.

    Returns
    -------
    list[Path]
        Descriptor paths in sorted order.

    Raises
    ------
    ConfigError
        Raised when the directory does not exist.
    """
    root = Path(entry_config_dir)
    if not root.is_dir():
        msg = f"Entry config directory not found: {root}"
        raise ConfigError(msg)
    return sorted(path for path in root.rglob(f"*{DESCRIPTOR_SUFFIX}") if path.is_file())


__all__ = ["DESCRIPTOR_SUFFIX", "find_entry_configs"]
