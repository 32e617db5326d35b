"""Test Demo."""

import json

import pytest
import pytest_mock
from opentelemetry.context import Context
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
    InMemorySpanExporter,
)
from opentelemetry.trace import StatusCode
from typer.testing import CliRunner

from tests.conftest import DSN, RecordingSink
from tracelog.demo import DemoService, app
from tracelog.logging import Logger, Severity
from tracelog.tracing import Tracer

runner = CliRunner()


@pytest.fixture
def service(sink: RecordingSink, tracer: Tracer) -> DemoService:
    """Demo service logging to the recording sink."""
    return DemoService(Logger(sink, level=Severity.DEBUG), tracer)


def test_arithmetic(service: DemoService) -> None:
    """Test the arithmetic operations."""
    # Arrange
    ctx = Context()

    # Act / Assert
    assert service.multiply(ctx, 2, 2) == 4  # noqa: PLR2004
    assert service.multiply(ctx, 4, 10) == 40  # noqa: PLR2004
    assert service.add(ctx, 40, 2) == 42  # noqa: PLR2004
    assert service.get_user(ctx, "haha@bla.com") == 42  # noqa: PLR2004


def test_run_span_tree(
    service: DemoService, span_exporter: InMemorySpanExporter
) -> None:
    """Test the spans created by a run and their parents."""
    # Act
    url = service.run(Context())

    # Assert
    spans = span_exporter.get_finished_spans()
    by_id = {span.context.span_id: span for span in spans}
    parents = {
        span.name: by_id[span.parent.span_id].name if span.parent else None
        for span in spans
    }
    assert sorted(span.name for span in spans) == [
        "Addition",
        "Multiplication",
        "Multiplication",
        "getDatabaseUser",
        "getUser",
        "main",
        "someFuncWithError",
    ]
    assert parents == {
        "main": None,
        "getUser": "main",
        "getDatabaseUser": "getUser",
        "Multiplication": "main",
        "Addition": "main",
        "someFuncWithError": "main",
    }
    assert len({span.context.trace_id for span in spans}) == 1

    main = next(span for span in spans if span.name == "main")
    assert url == (
        f"https://app.uptrace.dev/traces/{main.context.trace_id:032x}"
        f"?span_id={main.context.span_id:016x}"
    )


def test_run_span_statuses(
    service: DemoService, span_exporter: InMemorySpanExporter
) -> None:
    """Test the spans marked as failed by error records and recorded errors."""
    # Act
    service.run(Context())

    # Assert
    statuses = {
        span.name: span.status.status_code
        for span in span_exporter.get_finished_spans()
    }
    assert statuses["main"] == StatusCode.ERROR
    assert statuses["getDatabaseUser"] == StatusCode.ERROR
    assert statuses["someFuncWithError"] == StatusCode.ERROR
    assert statuses["getUser"] == StatusCode.UNSET
    assert statuses["Addition"] == StatusCode.UNSET

    failed = next(
        span
        for span in span_exporter.get_finished_spans()
        if span.name == "someFuncWithError"
    )
    assert failed.status.description == "dummy error"
    (event,) = failed.events
    assert event.attributes["exception.type"] == "RuntimeError"
    assert event.attributes["exception.message"] == "dummy error"
    assert "exception.stacktrace" in event.attributes


def test_run_logs(service: DemoService, sink: RecordingSink) -> None:
    """Test the records written by a run carry the context of their span."""
    # Act
    service.run(Context())

    # Assert
    messages = [record.msg for record in sink.records]
    assert messages == [
        "hello from tracelog",
        "This is an INFO",
        "This is a WARN",
        "This is an ERROR",
        "starting the application",
        "getDatabaseUser INFO",
        "getDatabaseUser INFO2",
        "getDatabaseUser ERR",
        "getting the user",
        "multiply",
        "multiply",
        "the answer is",
    ]
    assert all(record.trace_context for record in sink.records)
    assert len({r.trace_context["trace_id"] for r in sink.records}) == 1

    by_msg = {record.msg: record for record in sink.records}
    assert by_msg["getting the user"].fields == {"get_user": 42}
    assert by_msg["the answer is"].fields == {"multi_result": 42}
    assert by_msg["getDatabaseUser ERR"].fields == {"email": "haha@bla.com"}
    assert (
        by_msg["getDatabaseUser INFO"].trace_context
        != by_msg["starting the application"].trace_context
    )


class TestCLI:
    """Test the command line interface."""

    def test_missing_dsn(
        self,
        mocker: pytest_mock.MockerFixture,
        reset_loguru: None,  # noqa: ARG002
    ) -> None:
        """Test the demo stops when UPTRACE_DSN is not set."""
        # Arrange
        provider = mocker.patch("tracelog.tracing.tracer.TracerProvider")

        # Act
        result = runner.invoke(app)

        # Assert
        assert result.exit_code == 1
        assert "warn: UPTRACE_DSN not set" in result.output
        provider.assert_not_called()

    def test_invalid_log_level(
        self,
        monkeypatch: pytest.MonkeyPatch,
        reset_loguru: None,  # noqa: ARG002
    ) -> None:
        """Test the demo stops on invalid logging settings."""
        # Arrange
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        # Act
        result = runner.invoke(app)

        # Assert
        assert result.exit_code == 1
        assert "LOG_LEVEL" in result.output

    def test_missing_optional_dependency(
        self,
        monkeypatch: pytest.MonkeyPatch,
        mocker: pytest_mock.MockerFixture,
        reset_loguru: None,  # noqa: ARG002
    ) -> None:
        """Test the demo stops cleanly when a configured module is missing."""
        # Arrange
        monkeypatch.setenv("LOG_JSON_SERIALIZER", "orjson")
        mocker.patch("tracelog.logging._shared.has_orjson", return_value=False)

        # Act
        result = runner.invoke(app)

        # Assert
        assert result.exit_code == 1
        assert "error: Could not import module orjson" in result.output
        assert result.exception is None or isinstance(
            result.exception, SystemExit
        )

    @pytest.mark.parametrize("backend", ["loguru", "structlog"])
    def test_run(  # noqa: PLR0913
        self,
        monkeypatch: pytest.MonkeyPatch,
        mocker: pytest_mock.MockerFixture,
        backend: str,
        reset_loguru: None,  # noqa: ARG002
        reset_structlog: None,  # noqa: ARG002
        reset_otel_logger: None,  # noqa: ARG002
    ) -> None:
        """Test a full run exports the spans and prints the trace URL."""
        # Arrange
        monkeypatch.setenv("UPTRACE_DSN", DSN)
        monkeypatch.setenv("LOG_BACKEND", backend)
        exporter = InMemorySpanExporter()
        otlp_exporter = mocker.patch(
            "tracelog.tracing.tracer.OTLPSpanExporter", return_value=exporter
        )
        mocker.patch("tracelog.tracing.tracer.trace.set_tracer_provider")

        # Act
        result = runner.invoke(app)

        # Assert
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "INFO"
        assert lines[-1].startswith("trace: https://app.uptrace.dev/traces/")

        records = [json.loads(line) for line in lines[1:-1]]
        assert records[0]["msg"] == "hello from tracelog"
        assert records[0]["level"] == "ERROR"
        assert records[0]["ctx"]["foo"] == "bar"
        assert all("trace_id" in record for record in records)

        otlp_exporter.assert_called_once()
        spans = exporter.get_finished_spans()
        assert sorted(span.name for span in spans) == [
            "Addition",
            "Multiplication",
            "Multiplication",
            "getDatabaseUser",
            "getUser",
            "main",
            "someFuncWithError",
        ]
        main = next(span for span in spans if span.name == "main")
        assert main.resource.attributes["service.name"] == "otlp-example-uptrace"
        assert main.resource.attributes["service.version"] == "v1.0.0"
        assert main.resource.attributes["deployment.environment"] == "production"
        log_events = [event for event in main.events if event.name == "log"]
        assert [event.attributes["log.message"] for event in log_events][:4] == [
            "hello from tracelog",
            "This is an INFO",
            "This is a WARN",
            "This is an ERROR",
        ]
