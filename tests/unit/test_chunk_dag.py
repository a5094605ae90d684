"""Tests for the chunk dependency DAG."""

from __future__ import annotations

import pytest

from chunking.dag import ChunkDag
from entryconfig.errors import ConfigError
from entryconfig.models import ChunkSpec


def _diamond() -> ChunkDag:
    return ChunkDag.build(
        {
            "base": (),
            "left": ("base",),
            "right": ("base",),
            "leaf": ("left", "right"),
        }
    )


def test_topological_order_follows_declaration_on_ties() -> None:
    """Order dependencies first and break ties by declaration order."""
    dag = _diamond()
    assert dag.topological_order() == ("base", "left", "right", "leaf")
    assert dag.root_id == "base"


def test_build_accepts_chunk_specs() -> None:
    """Read dependencies from ChunkSpec values."""
    dag = ChunkDag.build(
        {
            "main": ChunkSpec(inputs=("main.js",), deps=("base",)),
            "base": ChunkSpec(inputs=("base.js",)),
        }
    )
    assert dag.topological_order() == ("base", "main")
    assert dag.direct_deps("main") == ("base",)


def test_ancestors_or_self_is_transitive() -> None:
    """Include the chunk and every transitive dependency."""
    dag = _diamond()
    assert dag.ancestors_or_self("leaf") == {"leaf", "left", "right", "base"}
    assert dag.ancestors_or_self("base") == {"base"}


def test_lowest_common_ancestor() -> None:
    """Return the most specific shared dependency."""
    dag = _diamond()
    assert dag.lowest_common_ancestor(["left", "right"]) == "base"
    assert dag.lowest_common_ancestor(["leaf", "left"]) == "left"
    assert dag.lowest_common_ancestor(["right"]) == "right"


def test_lowest_common_ancestor_rejects_empty_and_unknown() -> None:
    """Fail on empty sets and unknown chunk ids."""
    dag = _diamond()
    with pytest.raises(ConfigError):
        dag.lowest_common_ancestor([])
    with pytest.raises(ConfigError, match="Unknown chunk id"):
        dag.lowest_common_ancestor(["nope"])


def test_undeclared_dependency_is_rejected() -> None:
    """Reject dependencies on chunks that are not declared."""
    with pytest.raises(ConfigError, match="undeclared chunk 'missing'"):
        ChunkDag.build({"base": (), "main": ("missing",)})


def test_root_count_must_be_one() -> None:
    """Require exactly one chunk without dependencies."""
    with pytest.raises(ConfigError, match="Many root modules: a, b"):
        ChunkDag.build({"a": (), "b": ()})
    with pytest.raises(ConfigError, match="No root module"):
        ChunkDag.build({"a": ("b",), "b": ("a",)})


def test_cycle_is_rejected() -> None:
    """Reject cycles hanging off the root."""
    with pytest.raises(ConfigError, match="cycle"):
        ChunkDag.build({"base": (), "a": ("base", "b"), "b": ("a",)})
