"""Assign transitive source dependencies to chunks.

Every file reachable from a chunk's inputs is emitted exactly once, in the
lowest common ancestor of all chunks that reach it. Files inside a chunk keep
the dependency graph's load order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from itertools import chain

from chunking.dag import ChunkDag
from chunking.deps_graph import Dependency, DependencyGraph, paths_of
from chunking.manifest import ModuleManifest, ModuleUriFactory, build_module_manifest
from entryconfig.errors import ConfigError
from entryconfig.models import EntryConfig
from serde_msgspec import StructBaseStrict

logger = logging.getLogger(__name__)

type ChunkInputAssignment = dict[str, tuple[str, ...]]


class ChunkSplit(StructBaseStrict, frozen=True):
    """Split result for one chunked build unit."""

    sorted_chunk_ids: tuple[str, ...]
    assignment: ChunkInputAssignment
    chunk_flags: tuple[str, ...]
    manifest: ModuleManifest

    @property
    def root_chunk_id(self) -> str:
        """Return the id of the chunk without dependencies."""
        return self.manifest.root_id

    @property
    def js(self) -> tuple[str, ...]:
        """Return every assigned input, chunk by chunk in load order."""
        return tuple(chain.from_iterable(self.assignment[chunk] for chunk in self.sorted_chunk_ids))


def split_inputs(
    sorted_chunk_ids: Sequence[str],
    chunk_inputs: Mapping[str, Sequence[str]],
    graph: DependencyGraph,
    dag: ChunkDag,
) -> ChunkInputAssignment:
    """Place each transitive dependency in the LCA of the chunks needing it.

    Parameters
    ----------
    sorted_chunk_ids
        Chunk ids in topological order.
    chunk_inputs
        Declared entry inputs for each chunk.
    graph
        Dependency graph covering every input.
    dag
        Chunk DAG used for common ancestor queries.

    Returns
    -------
    ChunkInputAssignment
        Ordered, deduplicated source paths per chunk, keyed in
        ``sorted_chunk_ids`` order.
    """
    entries_by_chunk = {
        chunk_id: _entries_for(chunk_inputs[chunk_id], graph) for chunk_id in sorted_chunk_ids
    }
    closures = {
        chunk_id: frozenset(paths_of(graph.order(*entries)))
        for chunk_id, entries in entries_by_chunk.items()
    }
    owners: dict[str, list[str]] = {}
    for chunk_id in sorted_chunk_ids:
        for path in closures[chunk_id]:
            owners.setdefault(path, []).append(chunk_id)
    placement = {path: dag.lowest_common_ancestor(chunks) for path, chunks in owners.items()}
    global_order = graph.order(*chain.from_iterable(entries_by_chunk.values()))
    assigned: dict[str, list[str]] = {chunk_id: [] for chunk_id in sorted_chunk_ids}
    for path in paths_of(global_order):
        assigned[placement[path]].append(path)
    return {chunk_id: tuple(paths) for chunk_id, paths in assigned.items()}


def split_chunks(
    config: EntryConfig,
    dependencies: Iterable[Dependency],
    create_module_uris: ModuleUriFactory,
) -> ChunkSplit:
    """Split a chunked entry config into per-chunk inputs and loader metadata.

    Returns
    -------
    ChunkSplit
        Assignment, chunk flags, and module manifest.

    Raises
    ------
    ConfigError
        Raised when the config declares no chunks or the chunk graph is
        invalid.
    """
    modules = config.modules
    if not modules:
        msg = f"Entry config {config.id!r} declares no modules."
        raise ConfigError(msg)
    dag = ChunkDag.build(modules)
    sorted_chunk_ids = dag.topological_order()
    graph = DependencyGraph(dependencies)
    assignment = split_inputs(
        sorted_chunk_ids,
        {chunk_id: spec.inputs for chunk_id, spec in modules.items()},
        graph,
        dag,
    )
    chunk_flags = tuple(
        f"{chunk_id}:{len(assignment[chunk_id])}:{','.join(modules[chunk_id].deps)}"
        for chunk_id in sorted_chunk_ids
    )
    manifest = build_module_manifest(modules, create_module_uris)
    logger.debug(
        "Split %s into %d chunks (%d inputs)",
        config.id,
        len(sorted_chunk_ids),
        sum(len(paths) for paths in assignment.values()),
    )
    return ChunkSplit(
        sorted_chunk_ids=sorted_chunk_ids,
        assignment=assignment,
        chunk_flags=chunk_flags,
        manifest=manifest,
    )


def _entries_for(inputs: Sequence[str], graph: DependencyGraph) -> tuple[Dependency, ...]:
    entries: list[Dependency] = []
    for path in inputs:
        dep = graph.get(path)
        if dep is None:
            msg = f"input not found in dependency graph: {path}"
            raise ConfigError(msg)
        entries.append(dep)
    return tuple(entries)


__all__ = ["ChunkInputAssignment", "ChunkSplit", "split_chunks", "split_inputs"]
