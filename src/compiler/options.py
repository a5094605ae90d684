"""Translate resolved entry configs into compiler options."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

import msgspec

from chunking.splitter import ChunkSplit
from entryconfig.errors import ConfigError
from entryconfig.models import DefineValue, EntryConfig, PlovrMode
from serde_msgspec import StructBaseStrict, to_builtins

type CompilationLevel = Literal["BUNDLE", "WHITESPACE", "WHITESPACE_ONLY", "SIMPLE", "ADVANCED"]
type DependencyMode = Literal["NONE", "SORT_ONLY", "PRUNE_LEGACY", "PRUNE"]
type JsonStreams = Literal["NONE", "IN", "OUT", "BOTH"]

MODULE_OUTPUT_SUFFIX = "%s.js"


class CompilerOptions(StructBaseStrict, frozen=True):
    """Compiler flags; unset fields are not passed to the compiler."""

    dependency_mode: DependencyMode | None = None
    entry_point: tuple[str, ...] | None = None
    compilation_level: CompilationLevel | None = None
    js: tuple[str, ...] | None = None
    js_output_file: str | None = None
    chunk: tuple[str, ...] | None = None
    language_in: str | None = None
    language_out: str | None = None
    json_streams: JsonStreams | None = None
    warning_level: str | None = None
    debug: bool | None = None
    formatting: tuple[str, ...] | None = None
    define: tuple[str, ...] | None = None
    externs: tuple[str, ...] | None = None
    chunk_wrapper: tuple[str, ...] | None = None
    chunk_output_path_prefix: str | None = None
    isolation_mode: Literal["NONE", "IIFE"] | None = None

    def to_flags(self) -> list[str]:
        """Render the options as ``--name=value`` arguments.

        List values repeat the flag once per item. ``True`` renders as a bare
        ``--name``.

        Returns
        -------
        list[str]
            Command-line arguments.
        """
        payload = to_builtins(self)
        if not isinstance(payload, Mapping):
            return []
        flags: list[str] = []
        for name, value in payload.items():
            if isinstance(value, list):
                flags.extend(f"--{name}={item}" for item in value)
            elif value is True:
                flags.append(f"--{name}")
            elif value is False:
                flags.append(f"--{name}=false")
            else:
                flags.append(f"--{name}={value}")
        return flags


def to_compiler_options(config: EntryConfig, *, output_to_file: bool = True) -> CompilerOptions:
    """Return the options shared by page and chunk builds.

    Parameters
    ----------
    config
        Resolved entry config.
    output_to_file
        Whether ``output-file`` becomes ``js_output_file``.

    Returns
    -------
    CompilerOptions
        Options without build-shape specific fields.

    Raises
    ------
    ConfigError
        Raised when ``module-output-path`` does not end with ``%s.js``.
    """
    formatting = tuple(
        flag
        for flag, enabled in (
            ("PRETTY_PRINT", config.pretty_print),
            ("PRINT_INPUT_DELIMITER", config.print_input_delimiter),
        )
        if enabled
    )
    return CompilerOptions(
        compilation_level=_compilation_level(config.mode),
        language_in=config.language_in,
        language_out=config.language_out,
        externs=config.externs,
        warning_level=config.level,
        debug=config.debug,
        js_output_file=config.output_file if output_to_file else None,
        formatting=formatting or None,
        define=_render_defines(config.define) if config.define is not None else None,
        chunk_output_path_prefix=_chunk_output_path_prefix(config.module_output_path),
    )


def options_for_page(config: EntryConfig, *, output_to_file: bool = True) -> CompilerOptions:
    """Return options for a single-output page build.

    Returns
    -------
    CompilerOptions
        Options pruning ``paths`` down to what ``inputs`` require.
    """
    return msgspec.structs.replace(
        to_compiler_options(config, output_to_file=output_to_file),
        dependency_mode="PRUNE",
        js=config.paths,
        entry_point=config.inputs,
        isolation_mode="IIFE",
        json_streams=None if output_to_file else "OUT",
    )


def options_for_chunks(
    config: EntryConfig,
    split: ChunkSplit,
    *,
    output_to_file: bool = True,
) -> CompilerOptions:
    """Return options for a multi-chunk build.

    Returns
    -------
    CompilerOptions
        Options listing every assigned input and one chunk flag per chunk.
    """
    return msgspec.structs.replace(
        to_compiler_options(config, output_to_file=output_to_file),
        dependency_mode="NONE",
        js=split.js,
        chunk=split.chunk_flags,
        chunk_wrapper=(split.manifest.chunk_wrapper(),),
        json_streams=None if output_to_file else "OUT",
    )


def _compilation_level(mode: PlovrMode) -> CompilationLevel:
    if mode is PlovrMode.RAW:
        return "WHITESPACE"
    return mode.value


def _render_defines(define: Mapping[str, DefineValue]) -> tuple[str, ...]:
    return tuple(f"{key}={_render_define_value(value)}" for key, value in define.items())


def _render_define_value(value: DefineValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _chunk_output_path_prefix(module_output_path: str | None) -> str | None:
    if module_output_path is None:
        return None
    if not module_output_path.endswith(MODULE_OUTPUT_SUFFIX):
        msg = (
            f'"module-output-path" must end with "{MODULE_OUTPUT_SUFFIX}", '
            f'but actual "{module_output_path}"'
        )
        raise ConfigError(msg)
    return module_output_path[: -len(MODULE_OUTPUT_SUFFIX)]


__all__ = [
    "MODULE_OUTPUT_SUFFIX",
    "CompilationLevel",
    "CompilerOptions",
    "options_for_chunks",
    "options_for_page",
    "to_compiler_options",
]
