"""Span, attribute, and scope names emitted by chunkforge."""

from __future__ import annotations

from enum import StrEnum


class ScopeName(StrEnum):
    """Instrumentation scopes, one per layer that opens spans."""

    CLI = "chunkforge.cli"
    BUILD = "chunkforge.build"
    COMPILE = "chunkforge.compile"
    CHUNKING = "chunkforge.chunking"


class AttributeName(StrEnum):
    """Span attribute keys."""

    STAGE = "chunkforge.stage"
    STATUS = "chunkforge.status"
    DURATION_S = "chunkforge.duration_s"
    UNIT_ID = "chunkforge.unit_id"
    UNIT_KIND = "chunkforge.unit_kind"
    UNIT_COUNT = "chunkforge.unit_count"
    FAILED_COUNT = "chunkforge.failed_count"
    CONCURRENCY = "chunkforge.concurrency"
    BACKEND = "chunkforge.backend"


__all__ = ["AttributeName", "ScopeName"]
