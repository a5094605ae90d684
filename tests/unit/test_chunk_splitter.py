"""Tests for assigning source files to chunks."""

from __future__ import annotations

from pathlib import Path

import pytest

from chunking.dag import ChunkDag
from chunking.deps_graph import Dependency, DependencyGraph
from chunking.deps_source import ManifestDependencySource
from chunking.manifest import production_uri_factory
from chunking.splitter import split_chunks, split_inputs
from entryconfig.errors import ConfigError
from entryconfig.loader import load_entry_config
from entryconfig.models import ChunkSpec, EntryConfig

_DEPENDENCIES = (
    Dependency(path="base.js", provides=("app.base",), requires=("app.shared",)),
    Dependency(path="shared.js", provides=("app.shared",)),
    Dependency(path="main.js", provides=("app.main",), requires=("app.shared", "app.util")),
    Dependency(path="util.js", provides=("app.util",)),
)


def _config(modules: dict[str, ChunkSpec]) -> EntryConfig:
    return EntryConfig(id="unit", modules=modules, module_production_uri="/js/%s.js")


def test_shared_file_lands_in_common_ancestor() -> None:
    """Place files needed by several chunks in their common ancestor."""
    config = _config(
        {
            "base": ChunkSpec(inputs=("base.js",)),
            "main": ChunkSpec(inputs=("main.js",), deps=("base",)),
        }
    )
    split = split_chunks(config, _DEPENDENCIES, production_uri_factory("/js/%s.js"))
    assert split.sorted_chunk_ids == ("base", "main")
    assert split.assignment == {
        "base": ("shared.js", "base.js"),
        "main": ("util.js", "main.js"),
    }
    assert split.chunk_flags == ("base:2:", "main:2:base")
    assert split.js == ("shared.js", "base.js", "util.js", "main.js")
    assert split.root_chunk_id == "base"


def test_sibling_requirements_move_to_root() -> None:
    """Hoist a file required only by sibling chunks into their shared parent."""
    dependencies = (
        Dependency(path="root.js", provides=("root",)),
        Dependency(path="shared.js", provides=("shared",)),
        Dependency(path="a.js", requires=("shared",)),
        Dependency(path="b.js", requires=("shared",)),
    )
    dag = ChunkDag.build({"root": (), "a": ("root",), "b": ("root",)})
    assignment = split_inputs(
        dag.topological_order(),
        {"root": ("root.js",), "a": ("a.js",), "b": ("b.js",)},
        DependencyGraph(dependencies),
        dag,
    )
    assert assignment == {
        "root": ("root.js", "shared.js"),
        "a": ("a.js",),
        "b": ("b.js",),
    }


def test_every_file_is_assigned_exactly_once() -> None:
    """Cover each transitive file once across all chunks."""
    config = _config(
        {
            "base": ChunkSpec(inputs=("base.js",)),
            "main": ChunkSpec(inputs=("main.js",), deps=("base",)),
        }
    )
    split = split_chunks(config, _DEPENDENCIES, production_uri_factory("/js/%s.js"))
    assigned = [path for paths in split.assignment.values() for path in paths]
    assert sorted(assigned) == sorted(dep.path for dep in _DEPENDENCIES)


def test_single_chunk_keeps_dependency_order() -> None:
    """Give a lone chunk its full closure in load order."""
    config = _config({"only": ChunkSpec(inputs=("main.js",))})
    split = split_chunks(config, _DEPENDENCIES, production_uri_factory("/js/%s.js"))
    assert split.assignment == {"only": ("shared.js", "util.js", "main.js")}
    assert split.chunk_flags == ("only:3:",)


def test_split_is_deterministic() -> None:
    """Produce identical splits for identical input."""
    config = _config(
        {
            "base": ChunkSpec(inputs=("base.js",)),
            "main": ChunkSpec(inputs=("main.js",), deps=("base",)),
        }
    )
    factory = production_uri_factory("/js/%s.js")
    assert split_chunks(config, _DEPENDENCIES, factory) == split_chunks(
        config, _DEPENDENCIES, factory
    )


def test_unknown_input_is_rejected() -> None:
    """Fail when a declared input has no dependency record."""
    config = _config({"base": ChunkSpec(inputs=("ghost.js",))})
    with pytest.raises(ConfigError, match="input not found in dependency graph: ghost.js"):
        split_chunks(config, _DEPENDENCIES, production_uri_factory("/js/%s.js"))


def test_config_without_modules_is_rejected() -> None:
    """Refuse to split a page build."""
    config = EntryConfig(id="page", inputs=("main.js",))
    with pytest.raises(ConfigError, match="declares no modules"):
        split_chunks(config, _DEPENDENCIES, production_uri_factory("/js/%s.js"))


def test_fixture_descriptor_splits_with_search_path_manifest(entry_config_dir: Path) -> None:
    """Split a descriptor using the manifest found on its search path."""
    config = load_entry_config("chunks", entry_config_dir)
    dependencies = ManifestDependencySource().dependencies_for(config)
    split = split_chunks(config, dependencies, production_uri_factory(config.module_production_uri))
    js_dir = entry_config_dir / "js"
    assert split.assignment["base"] == (str(js_dir / "shared.js"), str(js_dir / "base.js"))
    assert split.assignment["main"] == (str(js_dir / "util.js"), str(js_dir / "main.js"))
