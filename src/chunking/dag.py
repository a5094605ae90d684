"""Rustworkx-backed chunk dependency DAG."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

import rustworkx as rx

from entryconfig.errors import ConfigError
from entryconfig.models import ChunkSpec

_ORDER_KEY_WIDTH = 8


@dataclass(frozen=True)
class ChunkNode:
    """Chunk node payload."""

    id: str
    direct_deps: tuple[str, ...]
    declared_index: int


@dataclass(frozen=True)
class ChunkDag:
    """Chunk DAG plus lookup indices.

    Edges point from a dependency to the chunk that depends on it, so the
    ancestors of a chunk are the chunks that load before it.
    """

    graph: rx.PyDiGraph
    chunk_idx: Mapping[str, int]
    order: tuple[str, ...]
    rank: Mapping[str, int]
    root_id: str

    @classmethod
    def build(cls, modules: Mapping[str, ChunkSpec | Sequence[str]]) -> ChunkDag:
        """Build a validated DAG from chunk declarations.

        Parameters
        ----------
        modules
            Mapping of chunk id to a ``ChunkSpec`` or to its dependency ids,
            in declaration order.

        Returns
        -------
        ChunkDag
            Validated chunk DAG.

        Raises
        ------
        ConfigError
            Raised when a dependency is undeclared, the graph has a cycle, or
            the number of root chunks is not exactly one.
        """
        nodes = [
            ChunkNode(id=chunk_id, direct_deps=_deps_of(spec), declared_index=index)
            for index, (chunk_id, spec) in enumerate(modules.items())
        ]
        _validate_dependencies(nodes)
        root_id = _single_root(nodes)
        graph = rx.PyDiGraph(
            multigraph=False,
            check_cycle=False,
            attrs={"label": "chunks"},
            node_count_hint=len(nodes),
        )
        indices = graph.add_nodes_from(nodes)
        chunk_idx = dict(zip([node.id for node in nodes], indices, strict=True))
        graph.add_edges_from_no_data(
            [(chunk_idx[dep], chunk_idx[node.id]) for node in nodes for dep in node.direct_deps]
        )
        if not rx.is_directed_acyclic_graph(graph):
            cycle = rx.digraph_find_cycle(graph)
            members = [graph[source].id for source, _ in cycle]
            msg = f"Chunk dependency cycle detected: {' -> '.join(members)}."
            raise ConfigError(msg)
        ordered = rx.lexicographical_topological_sort(graph, key=_node_sort_key)
        order = tuple(node.id for node in ordered)
        return cls(
            graph=graph,
            chunk_idx=chunk_idx,
            order=order,
            rank={chunk_id: position for position, chunk_id in enumerate(order)},
            root_id=root_id,
        )

    def topological_order(self) -> tuple[str, ...]:
        """Return chunk ids with dependencies before dependents.

        Returns
        -------
        tuple[str, ...]
            Chunk ids in load order; ties follow declaration order.
        """
        return self.order

    def direct_deps(self, chunk_id: str) -> tuple[str, ...]:
        """Return the declared dependencies of a chunk.

        Returns
        -------
        tuple[str, ...]
            Direct dependency ids.
        """
        return self.graph[self._index(chunk_id)].direct_deps

    def ancestors_or_self(self, chunk_id: str) -> frozenset[str]:
        """Return the chunk and every chunk it transitively depends on.

        Returns
        -------
        frozenset[str]
            Ancestor chunk ids including ``chunk_id``.
        """
        idx = self._index(chunk_id)
        ancestors = rx.ancestors(self.graph, idx)
        return frozenset({chunk_id, *(self.graph[node].id for node in ancestors)})

    def lowest_common_ancestor(self, chunk_ids: Iterable[str]) -> str:
        """Return the most specific chunk every given chunk depends on.

        A one-member set returns that member. Among several common ancestors
        the one latest in topological order wins.

        Returns
        -------
        str
            Lowest common ancestor chunk id.

        Raises
        ------
        ConfigError
            Raised when the set is empty or names an unknown chunk.
        """
        members = tuple(dict.fromkeys(chunk_ids))
        if not members:
            msg = "Cannot compute the common ancestor of an empty chunk set."
            raise ConfigError(msg)
        if len(members) == 1:
            self._index(members[0])
            return members[0]
        common = self.ancestors_or_self(members[0])
        for chunk_id in members[1:]:
            common &= self.ancestors_or_self(chunk_id)
        return max(common, key=self.rank.__getitem__)

    def _index(self, chunk_id: str) -> int:
        idx = self.chunk_idx.get(chunk_id)
        if idx is None:
            msg = f"Unknown chunk id: {chunk_id!r}."
            raise ConfigError(msg)
        return idx


def _deps_of(spec: ChunkSpec | Sequence[str]) -> tuple[str, ...]:
    if isinstance(spec, ChunkSpec):
        return spec.deps
    return tuple(spec)


def _validate_dependencies(nodes: Sequence[ChunkNode]) -> None:
    declared = {node.id for node in nodes}
    for node in nodes:
        for dep in node.direct_deps:
            if dep not in declared:
                msg = f"Chunk {node.id!r} depends on undeclared chunk {dep!r}."
                raise ConfigError(msg)


def _single_root(nodes: Sequence[ChunkNode]) -> str:
    roots = [node.id for node in nodes if not node.direct_deps]
    if not roots:
        msg = "No root module"
        raise ConfigError(msg)
    if len(roots) > 1:
        msg = f"Many root modules: {', '.join(roots)}"
        raise ConfigError(msg)
    return roots[0]


def _node_sort_key(node: ChunkNode) -> str:
    return f"{node.declared_index:0{_ORDER_KEY_WIDTH}d}"


__all__ = ["ChunkDag", "ChunkNode"]
