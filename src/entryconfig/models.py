"""Typed models for resolved entry configs."""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

import msgspec

from serde_msgspec import StructBaseCompat, StructBaseStrict

type WarningLevel = Literal["QUIET", "DEFAULT", "VERBOSE"]
type DefineValue = str | int | float | bool


class PlovrMode(StrEnum):
    """Compilation mode declared by an entry config."""

    RAW = "RAW"
    WHITESPACE = "WHITESPACE"
    SIMPLE = "SIMPLE"
    ADVANCED = "ADVANCED"


class ChunkSpec(StructBaseStrict, frozen=True):
    """Declared inputs and load-order dependencies of one chunk."""

    inputs: tuple[str, ...]
    deps: tuple[str, ...] = ()


class EntryConfig(StructBaseCompat, frozen=True):
    """Resolved build unit.

    Path-valued fields are absolute once the config has been resolved by
    :func:`entryconfig.loader.load_entry_config`. A config with ``modules`` is a
    chunk build; otherwise ``inputs`` describes a single page build.
    """

    id: str
    mode: PlovrMode = PlovrMode.SIMPLE
    paths: tuple[str, ...] = ()
    inputs: tuple[str, ...] | None = None
    modules: dict[str, ChunkSpec] | None = None
    define: dict[str, DefineValue] | None = None
    externs: tuple[str, ...] | None = None
    language_in: str | None = msgspec.field(default=None, name="language-in")
    language_out: str | None = msgspec.field(default=None, name="language-out")
    level: WarningLevel | None = None
    debug: bool | None = None
    pretty_print: bool | None = msgspec.field(default=None, name="pretty-print")
    print_input_delimiter: bool | None = msgspec.field(
        default=None,
        name="print-input-delimiter",
    )
    test_excludes: tuple[str, ...] | None = msgspec.field(default=None, name="test-excludes")
    output_file: str | None = msgspec.field(default=None, name="output-file")
    module_output_path: str | None = msgspec.field(default=None, name="module-output-path")
    module_production_uri: str | None = msgspec.field(
        default=None,
        name="module-production-uri",
    )

    @property
    def is_chunked(self) -> bool:
        """Return whether the config describes a multi-chunk build."""
        return self.modules is not None


__all__ = [
    "ChunkSpec",
    "DefineValue",
    "EntryConfig",
    "PlovrMode",
    "WarningLevel",
]
