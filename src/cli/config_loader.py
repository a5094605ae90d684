"""Config loading and normalization helpers for the CLI."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import cast

import msgspec

from cli.config_models import PATH_KEYS, RootConfigSpec
from cli.config_source import ConfigSource, ConfigValue, ConfigWithSources
from core_types import JsonValue
from engine.config import BuildConfig
from serde_msgspec import convert, describe_validation_error, to_builtins

CONFIG_FILENAME = "chunkforge.toml"
PYPROJECT_FILENAME = "pyproject.toml"
TOOL_SECTION = "chunkforge"
# Keys read by the CLI itself rather than the build engine.
_SESSION_KEYS = frozenset({"log_level"})


def load_effective_config(config_file: str | None) -> dict[str, JsonValue]:
    """Load config contents from chunkforge.toml / pyproject.toml or explicit --config.

    Returns
    -------
    dict[str, JsonValue]
        Parsed configuration contents.
    """
    return load_effective_config_with_sources(config_file).to_flat_dict()


def load_effective_config_with_sources(config_file: str | None) -> ConfigWithSources:
    """Load config contents with source tracking.

    An explicit ``config_file`` replaces the default search. Otherwise keys
    from the nearest ``chunkforge.toml`` win over ``[tool.chunkforge]`` in the
    nearest ``pyproject.toml``.

    Parameters
    ----------
    config_file
        Optional explicit config file path.

    Returns
    -------
    ConfigWithSources
        Configuration with source tracking for each value.

    Raises
    ------
    ValueError
        Raised when the explicit file is missing or a file fails validation.
    """
    values: dict[str, ConfigValue] = {}
    if config_file:
        path = Path(config_file)
        if not path.exists():
            msg = f"Config file not found: {config_file!r}."
            raise ValueError(msg)
        raw, location = _resolve_explicit_payload(path)
        _apply_config_values(values, raw, path=path, location=location, skip_existing=False)
        return ConfigWithSources(values=values)

    config_path = _find_in_parents(CONFIG_FILENAME)
    if config_path is not None:
        raw = _read_mapping(config_path)
        _apply_config_values(
            values,
            raw,
            path=config_path,
            location=str(config_path),
            skip_existing=False,
        )

    pyproject_path = _find_in_parents(PYPROJECT_FILENAME)
    if pyproject_path is not None:
        nested = _extract_tool_config(_read_mapping(pyproject_path))
        if nested is not None:
            _apply_config_values(
                values,
                nested,
                path=pyproject_path,
                location=f"{pyproject_path}:tool.{TOOL_SECTION}",
                skip_existing=True,
            )
    return ConfigWithSources(values=values)


def build_config_from_contents(
    contents: Mapping[str, JsonValue],
    **overrides: object,
) -> BuildConfig:
    """Return the BuildConfig for resolved contents plus CLI overrides.

    ``None`` overrides are ignored so unset flags keep file values.

    Returns
    -------
    BuildConfig
        Validated build configuration.

    Raises
    ------
    ValueError
        Raised when the merged payload fails validation.
    """
    payload = {key: value for key, value in contents.items() if key not in _SESSION_KEYS}
    payload.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return convert(payload, target_type=BuildConfig, strict=False)
    except msgspec.ValidationError as exc:
        details = describe_validation_error(exc)
        msg = f"Config validation failed: {details}"
        raise ValueError(msg) from exc


def default_config_contents() -> dict[str, JsonValue]:
    """Return BuildConfig defaults as builtin values.

    Returns
    -------
    dict[str, JsonValue]
        Default configuration contents.
    """
    defaults = {
        field: getattr(BuildConfig(), field) for field in BuildConfig.__struct_fields__
    }
    return cast("dict[str, JsonValue]", to_builtins(defaults))


def _find_in_parents(filename: str) -> Path | None:
    path = Path.cwd()
    while True:
        candidate = path / filename
        if candidate.exists():
            return candidate
        if path.parent == path:
            return None
        path = path.parent


def _read_mapping(path: Path) -> dict[str, JsonValue]:
    try:
        payload = msgspec.toml.decode(path.read_bytes(), type=dict[str, object])
    except msgspec.DecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ValueError(msg) from exc
    return cast("dict[str, JsonValue]", payload)


def _apply_config_values(
    values: dict[str, ConfigValue],
    raw: Mapping[str, JsonValue],
    *,
    path: Path,
    location: str,
    skip_existing: bool,
) -> None:
    root = _decode_root_config(raw, location=location)
    normalized = _resolve_relative_paths(_config_to_mapping(root), base_dir=path.parent)
    for key, value in normalized.items():
        if skip_existing and key in values:
            continue
        values[key] = ConfigValue(
            key=key,
            value=value,
            source=ConfigSource.CONFIG_FILE,
            location=location,
        )


def _decode_root_config(raw: Mapping[str, JsonValue], *, location: str) -> RootConfigSpec:
    try:
        return convert(raw, target_type=RootConfigSpec, strict=True)
    except msgspec.ValidationError as exc:
        details = describe_validation_error(exc)
        msg = f"Config validation failed for {location}: {details}"
        raise ValueError(msg) from exc


def _config_to_mapping(config: RootConfigSpec) -> dict[str, JsonValue]:
    return cast("dict[str, JsonValue]", to_builtins(config))


def _resolve_relative_paths(
    contents: dict[str, JsonValue],
    *,
    base_dir: Path,
) -> dict[str, JsonValue]:
    for key in PATH_KEYS:
        value = contents.get(key)
        if isinstance(value, str):
            contents[key] = os.path.abspath(os.path.join(base_dir, value))
    return contents


def _resolve_explicit_payload(path: Path) -> tuple[Mapping[str, JsonValue], str]:
    raw = _read_mapping(path)
    if path.name == PYPROJECT_FILENAME:
        nested = _extract_tool_config(raw)
        if nested is None:
            msg = f"Config validation failed for {path}: missing [tool.{TOOL_SECTION}] section."
            raise ValueError(msg)
        return nested, f"{path}:tool.{TOOL_SECTION}"
    return raw, str(path)


def _extract_tool_config(raw: Mapping[str, JsonValue]) -> dict[str, JsonValue] | None:
    tool_section = raw.get("tool")
    if not isinstance(tool_section, dict):
        return None
    nested = tool_section.get(TOOL_SECTION)
    if not isinstance(nested, dict):
        return None
    return cast("dict[str, JsonValue]", nested)


__all__ = [
    "CONFIG_FILENAME",
    "build_config_from_contents",
    "default_config_contents",
    "load_effective_config",
    "load_effective_config_with_sources",
]
