"""Tests for the provide/require dependency graph."""

from __future__ import annotations

import pytest

from chunking.deps_graph import Dependency, DependencyGraph, paths_of
from entryconfig.errors import ConfigError


def test_order_emits_requirements_first() -> None:
    """Emit transitive requirements before the records needing them."""
    graph = DependencyGraph(
        [
            Dependency(path="app.js", provides=("app",), requires=("util", "dom")),
            Dependency(path="util.js", provides=("util",), requires=("base",)),
            Dependency(path="dom.js", provides=("dom",), requires=("base",)),
            Dependency(path="base.js", provides=("base",)),
        ]
    )
    entry = graph.get("app.js")
    assert entry is not None
    assert paths_of(graph.order(entry)) == ("base.js", "util.js", "dom.js", "app.js")


def test_order_deduplicates_across_entries() -> None:
    """Emit shared records once across several entries."""
    base = Dependency(path="base.js", provides=("base",))
    a = Dependency(path="a.js", requires=("base",))
    b = Dependency(path="b.js", requires=("base",))
    graph = DependencyGraph([base, a, b])
    assert paths_of(graph.order(a, b)) == ("base.js", "a.js", "b.js")


def test_later_records_win() -> None:
    """Let later records replace earlier ones for the same path or symbol."""
    graph = DependencyGraph(
        [
            Dependency(path="old.js", provides=("x",)),
            Dependency(path="new.js", provides=("x",)),
        ]
    )
    assert graph.provider("x").path == "new.js"
    assert len(graph) == 2


def test_missing_provider_raises() -> None:
    """Fail when a required symbol has no provider."""
    entry = Dependency(path="a.js", requires=("ghost",))
    graph = DependencyGraph([entry])
    with pytest.raises(ConfigError, match="ghost"):
        graph.order(entry)


def test_require_cycle_raises() -> None:
    """Fail on require cycles."""
    a = Dependency(path="a.js", provides=("a",), requires=("b",))
    b = Dependency(path="b.js", provides=("b",), requires=("a",))
    graph = DependencyGraph([a, b])
    with pytest.raises(ConfigError, match="Require cycle detected") as excinfo:
        graph.order(a)
    message = str(excinfo.value)
    assert "a.js" in message
    assert "b.js" in message


def test_self_require_raises() -> None:
    """Fail when a record requires a symbol it provides itself."""
    a = Dependency(path="a.js", provides=("a",), requires=("a",))
    graph = DependencyGraph([a])
    with pytest.raises(ConfigError, match="Require cycle detected: a.js -> a.js"):
        graph.order(a)


def test_order_follows_declared_require_order() -> None:
    """Load each requirement subtree before the next declared requirement."""
    graph = DependencyGraph(
        [
            Dependency(path="main.js", requires=("b", "c")),
            Dependency(path="b.js", provides=("b",), requires=("d",)),
            Dependency(path="c.js", provides=("c",)),
            Dependency(path="d.js", provides=("d",), requires=("c",)),
        ]
    )
    entry = graph.get("main.js")
    assert entry is not None
    assert paths_of(graph.order(entry)) == ("c.js", "d.js", "b.js", "main.js")


def test_order_handles_deep_require_chains() -> None:
    """Order a linear require chain far deeper than the interpreter stack."""
    depth = 3000
    deps = [
        Dependency(
            path=f"f{index}.js",
            provides=(f"s{index}",),
            requires=(f"s{index + 1}",) if index + 1 < depth else (),
        )
        for index in range(depth)
    ]
    graph = DependencyGraph(deps)
    ordered = paths_of(graph.order(deps[0]))
    assert len(ordered) == depth
    assert ordered[0] == f"f{depth - 1}.js"
    assert ordered[-1] == "f0.js"
