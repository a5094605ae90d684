"""Tests for entry config resolution."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from entryconfig import ConfigError, InheritanceCycleError, PlovrMode
from entryconfig.loader import load_entry_config, load_entry_config_path


def _abs(base: Path, relative: str) -> str:
    return os.path.abspath(os.path.join(base, relative))


def test_simple_config_resolves_relative_paths(entry_config_dir: Path) -> None:
    """Resolve path fields against the descriptor directory."""
    config = load_entry_config("simple", entry_config_dir)
    assert config.id == "simple"
    assert config.mode is PlovrMode.RAW
    assert config.paths == (_abs(entry_config_dir, "../path1"),)
    assert config.inputs == (_abs(entry_config_dir, "../js/foo.js"),)
    assert config.externs == (
        _abs(entry_config_dir, "../ext/foo.js"),
        _abs(entry_config_dir, "ext/bar.js"),
    )
    assert config.define == {"goog.DEBUG": False, "app.NAME": "demo"}
    assert config.output_file == "../out/simple.js"
    assert config.pretty_print is True
    assert not config.is_chunked


def test_mode_override_replaces_declared_mode(entry_config_dir: Path) -> None:
    """Apply the caller's mode over the descriptor's mode."""
    config = load_entry_config("simple", entry_config_dir, mode="ADVANCED")
    assert config.mode is PlovrMode.ADVANCED


def test_inheritance_chain_merges_and_uses_root_directory(entry_config_dir: Path) -> None:
    """Let children shadow parents; resolve paths against the topmost ancestor."""
    config = load_entry_config_path(entry_config_dir / "child" / "grandchild" / "grandchild.json")
    assert config.id == "grandchild"
    assert config.mode is PlovrMode.ADVANCED
    assert config.level == "VERBOSE"
    assert config.debug is True
    assert config.paths == (_abs(entry_config_dir, "js"),)
    assert config.inputs == (_abs(entry_config_dir, "js/grand.js"),)
    assert config.externs == (_abs(entry_config_dir, "ext/parent.js"),)


def test_chunk_modules_are_resolved(entry_config_dir: Path) -> None:
    """Absolutize chunk inputs and keep declaration order."""
    config = load_entry_config("chunks", entry_config_dir)
    assert config.is_chunked
    assert config.modules is not None
    assert list(config.modules) == ["base", "main"]
    assert config.modules["base"].inputs == (_abs(entry_config_dir, "js/base.js"),)
    assert config.modules["base"].deps == ()
    assert config.modules["main"].deps == ("base",)
    assert config.module_output_path == "../out/%s.js"


def test_scalar_inputs_and_deps_are_normalized(entry_config_dir: Path) -> None:
    """Wrap scalar inputs and deps; treat null deps as empty."""
    config = load_entry_config("chunks-normalize", entry_config_dir)
    assert config.modules is not None
    assert config.modules["root"].inputs == (_abs(entry_config_dir, "js/base.js"),)
    assert config.modules["root"].deps == ()
    assert config.modules["leaf"].deps == ("root",)


def test_module_without_inputs_is_rejected(tmp_path: Path) -> None:
    """Reject chunks that omit their inputs."""
    (tmp_path / "bare.json").write_text('{"modules": {"base": {"deps": []}}}', encoding="utf-8")
    with pytest.raises(ConfigError, match="No module inputs: base"):
        load_entry_config("bare", tmp_path)


def test_module_with_empty_inputs_is_accepted(tmp_path: Path) -> None:
    """Accept a chunk whose inputs list is empty."""
    (tmp_path / "empty.json").write_text('{"modules": {"base": {"inputs": []}}}', encoding="utf-8")
    config = load_entry_config("empty", tmp_path)
    assert config.modules is not None
    assert config.modules["base"].inputs == ()


def test_unknown_mode_override_raises_config_error(entry_config_dir: Path) -> None:
    """Reject a mode override that names no known mode."""
    with pytest.raises(ConfigError, match="Unknown mode 'TURBO'"):
        load_entry_config("simple", entry_config_dir, mode="TURBO")


def test_inheritance_cycle_is_detected(tmp_path: Path) -> None:
    """Fail instead of looping on self-referencing chains."""
    (tmp_path / "a.json").write_text('{"inherits": "b.json"}', encoding="utf-8")
    (tmp_path / "b.json").write_text('{"inherits": "a.json"}', encoding="utf-8")
    with pytest.raises(InheritanceCycleError):
        load_entry_config("a", tmp_path)


def test_missing_descriptor_raises_config_error(tmp_path: Path) -> None:
    """Report missing descriptors as configuration errors."""
    with pytest.raises(ConfigError, match="Entry config not found"):
        load_entry_config("absent", tmp_path)


def test_missing_parent_raises_config_error(tmp_path: Path) -> None:
    """Report a dangling ``inherits`` reference."""
    (tmp_path / "orphan.json").write_text('{"inherits": "gone.json"}', encoding="utf-8")
    with pytest.raises(ConfigError, match="gone.json"):
        load_entry_config("orphan", tmp_path)


def test_invalid_field_type_raises_config_error(tmp_path: Path) -> None:
    """Wrap validation failures with the descriptor path."""
    (tmp_path / "bad.json").write_text('{"mode": "FAST"}', encoding="utf-8")
    with pytest.raises(ConfigError, match="validation failed"):
        load_entry_config("bad", tmp_path)


def test_non_object_root_is_rejected(tmp_path: Path) -> None:
    """Reject descriptors whose root is not an object."""
    (tmp_path / "list.json").write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError, match="must be an object"):
        load_entry_config("list", tmp_path)
