"""Shared test fixtures."""

import logging
import os
from collections.abc import Generator, Mapping
from typing import Any, NamedTuple

import pytest
import structlog
from loguru import logger as loguru_logger
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
    InMemorySpanExporter,
)

from tracelog.errorhandler import set_error_handler
from tracelog.logging import Severity
from tracelog.tracing import Tracer, parse_dsn

DSN = "https://secret@api.uptrace.dev?grpc=4317"

_ENV_PREFIXES = ("LOG_", "TRACING_", "UPTRACE_", "OTEL_", "DEPLOYMENT_")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove settings environment variables."""
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES):
            monkeypatch.delenv(name)


@pytest.fixture(autouse=True)
def reset_error_handler() -> Generator[None, None, None]:
    """Restore the default error handler."""
    yield
    set_error_handler(None)


@pytest.fixture
def reset_loguru() -> Generator[None, None, None]:
    """Reset loguru configuration."""
    loguru_logger.configure(handlers=[])
    yield
    loguru_logger.remove()


@pytest.fixture
def reset_structlog() -> Generator[None, None, None]:
    """Reset structlog configuration."""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture
def reset_otel_logger() -> Generator[None, None, None]:
    """Restore the handlers of the OpenTelemetry logger."""
    otel_logger = logging.getLogger("opentelemetry")
    old_handlers = otel_logger.handlers.copy()
    yield
    otel_logger.handlers.clear()
    otel_logger.handlers.extend(old_handlers)


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """In-memory span exporter."""
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter: InMemorySpanExporter) -> Tracer:
    """Tracer exporting synchronously to the in-memory exporter."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return Tracer(provider, dsn=parse_dsn(DSN))


class SinkRecord(NamedTuple):
    """Record received by `RecordingSink`."""

    severity: Severity
    msg: str
    fields: dict[str, Any]
    trace_context: dict[str, str]


class RecordingSink:
    """Log sink keeping records in memory."""

    def __init__(self) -> None:
        self.records: list[SinkRecord] = []
        self.flush_count = 0

    def write(
        self,
        severity: Severity,
        msg: str,
        fields: Mapping[str, Any],
        trace_context: Mapping[str, str],
        *,
        depth: int = 0,  # noqa: ARG002
    ) -> None:
        """Keep the record."""
        self.records.append(
            SinkRecord(severity, msg, dict(fields), dict(trace_context))
        )

    def flush(self) -> None:
        """Count flushes."""
        self.flush_count += 1


@pytest.fixture
def sink() -> RecordingSink:
    """Recording log sink."""
    return RecordingSink()
