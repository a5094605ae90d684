"""Require/provide dependency graph over source files."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence

import rustworkx as rx

from entryconfig.errors import ConfigError
from serde_msgspec import StructBaseStrict


class Dependency(StructBaseStrict, frozen=True):
    """One source file and the symbols it provides and requires."""

    path: str
    provides: tuple[str, ...] = ()
    requires: tuple[str, ...] = ()


class DependencyGraph:
    """Resolve source load order from provide/require declarations.

    Parameters
    ----------
    dependencies
        Source records. A later record with the same path replaces the earlier
        one; a later provider of the same symbol wins.
    """

    def __init__(self, dependencies: Iterable[Dependency]) -> None:
        by_path: dict[str, Dependency] = {}
        for dep in dependencies:
            by_path[dep.path] = dep
        self._by_path = by_path
        providers: dict[str, Dependency] = {}
        for dep in by_path.values():
            for symbol in dep.provides:
                providers[symbol] = dep
        self._providers: Mapping[str, Dependency] = providers

    def __len__(self) -> int:
        return len(self._by_path)

    def get(self, path: str) -> Dependency | None:
        """Return the record for ``path`` if the graph knows it.

        Returns
        -------
        Dependency | None
            Matching record.
        """
        return self._by_path.get(path)

    def provider(self, symbol: str) -> Dependency:
        """Return the record providing ``symbol``.

        Returns
        -------
        Dependency
            Providing record.

        Raises
        ------
        ConfigError
            Raised when no record provides the symbol.
        """
        dep = self._providers.get(symbol)
        if dep is None:
            msg = f"Missing provider for required symbol: {symbol!r}."
            raise ConfigError(msg)
        return dep

    def order(self, *entries: Dependency) -> tuple[Dependency, ...]:
        """Return entries and their transitive requirements in load order.

        Requirements are discovered depth-first in declared order. The load
        order is the topological order of the require graph that prefers the
        earliest discovered record, which is the depth-first post-order.

        Returns
        -------
        tuple[Dependency, ...]
            Deduplicated records, dependencies first.

        Raises
        ------
        ConfigError
            Raised on a missing provider or a require cycle.
        """
        graph = rx.PyDiGraph(multigraph=False, check_cycle=False, attrs={"label": "requires"})
        node_idx: dict[str, int] = {}
        edges: list[tuple[str, str]] = []
        for entry in entries:
            if entry.path in node_idx:
                continue
            node_idx[entry.path] = graph.add_node(entry)
            stack: list[tuple[Dependency, Iterator[str]]] = [(entry, iter(entry.requires))]
            while stack:
                dep, pending = stack[-1]
                symbol = next(pending, None)
                if symbol is None:
                    stack.pop()
                    continue
                required = self.provider(symbol)
                edges.append((required.path, dep.path))
                if required.path not in node_idx:
                    node_idx[required.path] = graph.add_node(required)
                    stack.append((required, iter(required.requires)))
        graph.add_edges_from_no_data([(node_idx[src], node_idx[dst]) for src, dst in edges])
        if not rx.is_directed_acyclic_graph(graph):
            cycle = rx.digraph_find_cycle(graph)
            members = [graph[target].path for _, target in reversed(cycle)]
            members.append(members[0])
            msg = f"Require cycle detected: {' -> '.join(members)}."
            raise ConfigError(msg)
        width = len(str(len(node_idx)))
        return tuple(
            rx.lexicographical_topological_sort(
                graph,
                key=lambda dep: f"{node_idx[dep.path]:0{width}d}",
            )
        )


def paths_of(dependencies: Sequence[Dependency]) -> tuple[str, ...]:
    """Return the path of every record in order.

    Returns
    -------
    tuple[str, ...]
        Source paths.
    """
    return tuple(dep.path for dep in dependencies)


__all__ = ["Dependency", "DependencyGraph", "paths_of"]
