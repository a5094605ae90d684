"""Entry config descriptors: models, inheritance resolution, and errors."""

from entryconfig.errors import ConfigError, InheritanceCycleError
from entryconfig.loader import load_entry_config, load_entry_config_path
from entryconfig.models import ChunkSpec, EntryConfig, PlovrMode

__all__ = [
    "ChunkSpec",
    "ConfigError",
    "EntryConfig",
    "InheritanceCycleError",
    "PlovrMode",
    "load_entry_config",
    "load_entry_config_path",
]
