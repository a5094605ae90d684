"""Resolve entry config descriptors into EntryConfig values.

A descriptor is a JSON-with-comments file named ``<unit id>.json``. It may
point at a parent descriptor through ``inherits``; child fields shadow parent
fields and relative paths resolve against the directory of the topmost
ancestor in the chain.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path

import msgspec

from core_types import PathLike
from entryconfig.errors import ConfigError, InheritanceCycleError
from entryconfig.jsonc import decode_jsonc
from entryconfig.models import EntryConfig, PlovrMode
from serde_msgspec import convert, describe_validation_error

logger = logging.getLogger(__name__)

_INHERITS_KEY = "inherits"
_PATH_LIST_FIELDS: tuple[str, ...] = ("paths", "inputs", "externs", "test-excludes")


def load_entry_config(
    unit_id: str,
    entry_config_dir: PathLike,
    *,
    mode: PlovrMode | str | None = None,
) -> EntryConfig:
    """Load ``<entry_config_dir>/<unit_id>.json`` and resolve its inheritance chain.

    Parameters
    ----------
    unit_id
        Build unit identifier; also the descriptor file stem.
    entry_config_dir
        Directory holding the descriptor.
    mode
        Optional mode that replaces the resolved ``mode``.

    Returns
    -------
    EntryConfig
        Resolved config with absolute path fields.
    """
    path = Path(entry_config_dir) / f"{unit_id}.json"
    return _resolve(path, unit_id=unit_id, mode=mode)


def load_entry_config_path(
    path: PathLike,
    *,
    mode: PlovrMode | str | None = None,
) -> EntryConfig:
    """Load a descriptor by path; the unit id is the file stem.

    Returns
    -------
    EntryConfig
        Resolved config with absolute path fields.
    """
    descriptor = Path(path)
    return _resolve(descriptor, unit_id=descriptor.stem, mode=mode)


def _resolve(
    path: Path,
    *,
    unit_id: str,
    mode: PlovrMode | str | None,
) -> EntryConfig:
    current = Path(os.path.abspath(path))
    merged = _load_descriptor(current)
    visited = {current}
    while (parent_ref := merged.pop(_INHERITS_KEY, None)) is not None:
        if not isinstance(parent_ref, str):
            msg = f"'inherits' must be a string path in {current}."
            raise ConfigError(msg)
        parent_path = Path(os.path.abspath(current.parent / parent_ref))
        if parent_path in visited:
            msg = f"Inheritance cycle detected at {parent_path}."
            raise InheritanceCycleError(msg)
        visited.add(parent_path)
        logger.debug("Descriptor %s inherits %s", current, parent_path)
        merged = {**_load_descriptor(parent_path), **merged}
        current = parent_path
    base_dir = current.parent
    merged.setdefault("id", unit_id)
    _absolutize(merged, base_dir)
    config = _to_entry_config(merged, source=path)
    if mode is not None:
        try:
            resolved_mode = PlovrMode(mode)
        except ValueError as exc:
            choices = ", ".join(member.value for member in PlovrMode)
            msg = f"Unknown mode {mode!r} for {path}; expected one of: {choices}."
            raise ConfigError(msg) from exc
        config = msgspec.structs.replace(config, mode=resolved_mode)
    return config


def _load_descriptor(path: Path) -> dict[str, object]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        msg = f"Entry config not found: {path}"
        raise ConfigError(msg) from exc
    try:
        payload = decode_jsonc(text)
    except msgspec.DecodeError as exc:
        msg = f"Invalid entry config JSON in {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(payload, dict):
        msg = f"Entry config root must be an object in {path}, got {type(payload).__name__}."
        raise ConfigError(msg)
    return _normalize(payload)


def _normalize(payload: dict[str, object]) -> dict[str, object]:
    modules = payload.get("modules")
    if modules is not None:
        if not isinstance(modules, dict):
            msg = "'modules' must be an object keyed by chunk id."
            raise ConfigError(msg)
        normalized: dict[str, object] = {}
        for chunk_id, spec in modules.items():
            if not isinstance(spec, dict):
                msg = f"Chunk spec must be an object: {chunk_id}"
                raise ConfigError(msg)
            inputs = spec.get("inputs")
            if inputs is None or inputs == "":
                msg = f"No module inputs: {chunk_id}"
                raise ConfigError(msg)
            deps = spec.get("deps")
            normalized[chunk_id] = {
                **spec,
                "inputs": _as_list(inputs),
                "deps": _as_list(deps) if deps else [],
            }
        payload["modules"] = normalized
    excludes = payload.get("test-excludes")
    if excludes and not isinstance(excludes, list):
        payload["test-excludes"] = [excludes]
    return payload


def _as_list(value: object) -> list[object]:
    if isinstance(value, list):
        return value
    return [value]


def _absolutize(payload: dict[str, object], base_dir: Path) -> None:
    resolve = _resolver(base_dir)
    for key in _PATH_LIST_FIELDS:
        value = payload.get(key)
        if isinstance(value, list):
            payload[key] = [resolve(item) for item in value]
    modules = payload.get("modules")
    if isinstance(modules, Mapping):
        for spec in modules.values():
            if isinstance(spec, dict) and isinstance(spec.get("inputs"), list):
                spec["inputs"] = [resolve(item) for item in spec["inputs"]]


def _resolver(base_dir: Path) -> Callable[[object], object]:
    def _resolve_item(item: object) -> object:
        if not isinstance(item, str):
            return item
        return os.path.abspath(os.path.join(base_dir, item))

    return _resolve_item


def _to_entry_config(payload: Mapping[str, object], *, source: Path) -> EntryConfig:
    try:
        return convert(payload, target_type=EntryConfig, strict=True)
    except msgspec.ValidationError as exc:
        details = describe_validation_error(exc)
        msg = f"Entry config validation failed for {source}: {details}"
        raise ConfigError(msg) from exc


__all__ = ["load_entry_config", "load_entry_config_path"]
