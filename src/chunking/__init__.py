"""Chunk DAG, dependency graph, and input splitting for chunked builds."""

from chunking.dag import ChunkDag, ChunkNode
from chunking.deps_graph import Dependency, DependencyGraph
from chunking.deps_source import DependencySource, ManifestDependencySource
from chunking.manifest import ModuleManifest, build_module_manifest, production_uri_factory
from chunking.splitter import ChunkInputAssignment, ChunkSplit, split_chunks, split_inputs

__all__ = [
    "ChunkDag",
    "ChunkInputAssignment",
    "ChunkNode",
    "ChunkSplit",
    "Dependency",
    "DependencyGraph",
    "DependencySource",
    "ManifestDependencySource",
    "ModuleManifest",
    "build_module_manifest",
    "production_uri_factory",
    "split_chunks",
    "split_inputs",
]
