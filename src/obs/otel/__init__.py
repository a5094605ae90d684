"""OpenTelemetry spans for chunkforge builds."""

from obs.otel.names import AttributeName, ScopeName
from obs.otel.tracing import normalize_attributes, record_exception, set_span_attributes, stage_span

__all__ = [
    "AttributeName",
    "ScopeName",
    "normalize_attributes",
    "record_exception",
    "set_span_attributes",
    "stage_span",
]
