"""Shared help-panel groups for the chunkforge CLI."""

from __future__ import annotations

from cyclopts import Group

session_group = Group(
    "Session",
    help="Session and run context options.",
    sort_key=0,
)

input_group = Group(
    "Inputs",
    help="Select entry configs and dependency manifests.",
    sort_key=1,
)

execution_group = Group(
    "Execution",
    help="Control compilation mode, backend, and parallelism.",
    sort_key=2,
)

__all__ = [
    "execution_group",
    "input_group",
    "session_group",
]
