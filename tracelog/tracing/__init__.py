"""Tracing."""

from opentelemetry.trace import SpanKind, StatusCode

from tracelog.tracing.dsn import DSN, parse_dsn
from tracelog.tracing.errors import (
    DSNNotFoundError,
    InvalidDSNError,
    SpanEndedError,
    TracingSettingsValidationError,
)
from tracelog.tracing.tracer import Tracer, configure_tracing

__all__ = [
    "DSN",
    "DSNNotFoundError",
    "InvalidDSNError",
    "SpanEndedError",
    "SpanKind",
    "StatusCode",
    "Tracer",
    "TracingSettingsValidationError",
    "configure_tracing",
    "parse_dsn",
]
