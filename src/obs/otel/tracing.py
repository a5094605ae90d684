"""Spans around build stages.

Only the OpenTelemetry API is used; spans are no-ops until the host process
installs an SDK tracer provider.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from functools import cache
from importlib.metadata import PackageNotFoundError, version

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode
from opentelemetry.util.types import AttributeValue

from obs.otel.names import AttributeName, ScopeName

logger = logging.getLogger(__name__)

_DISTRIBUTION = "chunkforge"
_VERSION_ENV = "CHUNKFORGE_SERVICE_VERSION"
_SCHEMA_URL_ENVS = ("CHUNKFORGE_OTEL_SCHEMA_URL", "OTEL_SCHEMA_URL")
_VALUE_LENGTH_ENV = "OTEL_ATTRIBUTE_VALUE_LENGTH_LIMIT"


@cache
def _scope_metadata() -> tuple[str, str | None]:
    scope_version = os.environ.get(_VERSION_ENV, "").strip()
    if not scope_version:
        try:
            scope_version = version(_DISTRIBUTION)
        except PackageNotFoundError:
            scope_version = "unknown"
    schema_urls = (os.environ.get(name, "").strip() for name in _SCHEMA_URL_ENVS)
    return scope_version, next((url for url in schema_urls if url), None)


@cache
def _value_length_limit() -> int | None:
    raw = os.environ.get(_VALUE_LENGTH_ENV, "").strip()
    if not raw:
        return None
    try:
        return max(int(raw), 0)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", _VALUE_LENGTH_ENV, raw)
        return None


def _clip(text: str) -> str:
    limit = _value_length_limit()
    return text if limit is None else text[:limit]


def _attribute_value(value: object) -> AttributeValue:
    if isinstance(value, str):
        return _clip(value)
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        items = [item for item in value if item is not None]
        if items and all(isinstance(item, (bool, int, float)) for item in items):
            kinds = {type(item) for item in items}
            if len(kinds) == 1:
                return items
        return [_clip(str(item)) for item in items]
    return _clip(str(value))


def normalize_attributes(attrs: Mapping[str, object] | None) -> dict[str, AttributeValue]:
    """Return ``attrs`` as OpenTelemetry attribute values.

    ``None`` values are dropped. Sequences become homogeneous lists and any
    other object its ``str``. Strings are clipped to
    ``OTEL_ATTRIBUTE_VALUE_LENGTH_LIMIT`` when it is set.

    Returns
    -------
    dict[str, AttributeValue]
        Attributes safe to attach to a span.
    """
    if not attrs:
        return {}
    return {str(key): _attribute_value(value) for key, value in attrs.items() if value is not None}


def get_tracer(scope: ScopeName) -> trace.Tracer:
    """Return the tracer for one chunkforge scope."""
    scope_version, schema_url = _scope_metadata()
    return trace.get_tracer(
        scope,
        instrumenting_library_version=scope_version,
        schema_url=schema_url,
    )


def set_span_attributes(span: Span, attrs: Mapping[str, object] | None) -> None:
    """Attach normalized attributes to ``span``."""
    span.set_attributes(normalize_attributes(attrs))


def record_exception(span: Span, exc: BaseException) -> None:
    """Record ``exc`` on ``span`` and mark the span failed."""
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, str(exc)))


@contextmanager
def stage_span(
    name: str,
    *,
    stage: str,
    scope_name: ScopeName,
    attributes: Mapping[str, object] | None = None,
) -> Iterator[Span]:
    """Open a span for one build stage.

    The span carries the stage name, its status (``ok`` or ``error``) and its
    wall-clock duration. Exceptions escaping the block are recorded and
    re-raised.

    Parameters
    ----------
    name
        Span name.
    stage
        Stage recorded under ``chunkforge.stage``.
    scope_name
        Scope whose tracer opens the span.
    attributes
        Extra span attributes.

    Yields
    ------
    Span
        The open span.
    """
    start = time.monotonic()
    status = "ok"
    with get_tracer(scope_name).start_as_current_span(
        name,
        attributes=normalize_attributes({AttributeName.STAGE: stage, **(attributes or {})}),
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as exc:
            status = "error"
            record_exception(span, exc)
            raise
        finally:
            set_span_attributes(
                span,
                {
                    AttributeName.STATUS: status,
                    AttributeName.DURATION_S: time.monotonic() - start,
                },
            )


__all__ = [
    "get_tracer",
    "normalize_attributes",
    "record_exception",
    "set_span_attributes",
    "stage_span",
]
