"""Tracer."""

import traceback
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from logging import Logger, getLogger
from typing import TYPE_CHECKING, Annotated

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http import Compression
from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
    OTLPSpanExporter,
)
from opentelemetry.sdk.resources import (
    DEPLOYMENT_ENVIRONMENT,
    SERVICE_NAME,
    SERVICE_VERSION,
    Resource,
    ResourceDetector,
    get_aggregated_resources,
)
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.trace import SpanKind, Status, StatusCode
from pydantic import ValidationError
from typing_extensions import Doc

from tracelog.errorhandler import handle_error, install_otel_error_handler
from tracelog.tracing.config import TracingSettings
from tracelog.tracing.dsn import DSN, parse_dsn
from tracelog.tracing.errors import (
    DSNNotFoundError,
    SpanEndedError,
    TracingSettingsValidationError,
)

if TYPE_CHECKING:
    from opentelemetry.context import Context
    from opentelemetry.trace import Span
    from opentelemetry.util.types import Attributes

INSTRUMENTATION_NAME = "tracelog"


def _is_ended(span: "Span") -> bool:
    return isinstance(span, ReadableSpan) and span.end_time is not None


class Tracer:
    """Tracer creating spans under the span carried by an explicit context.

    Usage:
        tracer = configure_tracing(service_name="billing")
        with tracer.start_span(Context(), "charge") as (ctx, span):
            charge(ctx, amount)
        tracer.shutdown()
    """

    def __init__(
        self,
        provider: Annotated[
            TracerProvider, Doc("Tracer provider owning the span processors.")
        ],
        *,
        dsn: Annotated[
            DSN | None, Doc("Backend DSN, required to build trace URLs.")
        ] = None,
        instrumentation_name: Annotated[
            str, Doc("Name of the instrumentation scope of the spans.")
        ] = INSTRUMENTATION_NAME,
        strict: Annotated[
            bool,
            Doc(
                "Raise SpanEndedError when an ended span is annotated, instead of logging a warning."
            ),
        ] = False,
        shutdown_timeout: Annotated[
            float,
            Doc("Maximum time (in seconds) spent flushing pending spans on shutdown."),
        ] = 5.0,
        logger: Logger | None = None,
    ) -> None:
        """Initialize the tracer."""
        self.strict = strict
        self.shutdown_timeout = shutdown_timeout
        self.logger = logger or getLogger(__name__)

        self._provider = provider
        self._tracer = provider.get_tracer(instrumentation_name)
        self._dsn = dsn

    @property
    def provider(self) -> TracerProvider:
        """Return the tracer provider."""
        return self._provider

    @property
    def dsn(self) -> DSN | None:
        """Return the backend DSN."""
        return self._dsn

    @contextmanager
    def start_span(
        self,
        context: "Context | None",
        name: str,
        *,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes: "Attributes" = None,
    ) -> Iterator[tuple["Context", "Span"]]:
        """Start a span, child of the span carried by `context` if any.

        The span is ended when the block exits, whatever the exit path. An exception
        escaping the block is recorded on the span and sets its status to ERROR.

        Yields:
            The child context carrying the new span, and the span.
        """
        span = self._tracer.start_span(
            name,
            context=context,
            kind=kind,
            attributes=attributes,
            record_exception=False,
            set_status_on_exception=False,
        )
        child_context = trace.set_span_in_context(span, context)
        try:
            yield child_context, span
        except Exception as error:
            self.record_error(span, error)
            self.set_status(span, StatusCode.ERROR, str(error))
            raise
        finally:
            span.end()

    def record_error(
        self,
        span: "Span",
        error: BaseException,
        *,
        capture_stack: bool = True,
    ) -> None:
        """Add an `exception` event to a running span.

        Args:
            span: The span.
            error: The error to record.
            capture_stack: Add the `exception.stacktrace` attribute: the error traceback
                if it was raised, otherwise the current call stack.

        Raises:
            SpanEndedError: If the span is ended and the tracer is strict.
        """
        if not self._check_running(span, "record error"):
            return

        error_type = type(error)
        if error_type.__module__ == "builtins":
            type_name = error_type.__qualname__
        else:
            type_name = f"{error_type.__module__}.{error_type.__qualname__}"

        attributes: dict[str, str] = {
            "exception.type": type_name,
            "exception.message": str(error),
        }
        if capture_stack:
            if error.__traceback__ is not None:
                stack = traceback.format_exception(error)
            else:
                stack = traceback.format_stack()[:-1]
            attributes["exception.stacktrace"] = "".join(stack)
        span.add_event("exception", attributes)

    def set_status(
        self,
        span: "Span",
        status: StatusCode,
        message: str = "",
    ) -> None:
        """Set the status of a running span.

        The message is only kept for the ERROR status.

        Raises:
            SpanEndedError: If the span is ended and the tracer is strict.
        """
        if not self._check_running(span, "set status"):
            return

        if status == StatusCode.ERROR and message:
            span.set_status(Status(status, message))
        else:
            span.set_status(Status(status))

    def trace_url(self, span: "Span") -> str:
        """Return the URL of the trace containing a span in the backend UI.

        Raises:
            DSNNotFoundError: If the tracer has no DSN.
        """
        if self._dsn is None:
            raise DSNNotFoundError
        span_context = span.get_span_context()
        return (
            f"{self._dsn.site_url}/traces/{span_context.trace_id:032x}"
            f"?span_id={span_context.span_id:016x}"
        )

    def force_flush(self, timeout: float | None = None) -> bool:
        """Export pending spans, waiting at most `timeout` seconds.

        Returns:
            True if every pending span was exported in time.
        """
        timeout = self.shutdown_timeout if timeout is None else timeout
        return self._provider.force_flush(timeout_millis=int(timeout * 1000))

    def shutdown(self, timeout: float | None = None) -> None:
        """Flush pending spans and release the exporter.

        Failing to flush in time is reported to the error handler.
        """
        timeout = self.shutdown_timeout if timeout is None else timeout
        if not self.force_flush(timeout):
            handle_error(
                TimeoutError(f"Could not export pending spans within {timeout}s")
            )
        self._provider.shutdown()

    def _check_running(self, span: "Span", operation: str) -> bool:
        if not _is_ended(span):
            return True

        name = span.name if isinstance(span, ReadableSpan) else str(span)
        if self.strict:
            raise SpanEndedError(name, operation)
        self.logger.warning("Cannot %s on ended span '%s'", operation, name)
        return False


def configure_tracing(  # noqa: PLR0913
    *,
    dsn: str | None = None,
    service_name: str | None = None,
    service_version: str | None = None,
    deployment_environment: str | None = None,
    resource_detectors: Sequence[ResourceDetector] = (),
    span_exporter: SpanExporter | None = None,
    set_global: bool = True,
) -> Tracer:
    """Configure span export to Uptrace and return a `Tracer`.

    Arguments take precedence over environment variables.

    Environment Variables:
        UPTRACE_DSN: Uptrace project DSN.
        OTEL_SERVICE_NAME: Service name. Default: unknown_service
        OTEL_SERVICE_VERSION: Service version. Default: None
        DEPLOYMENT_ENVIRONMENT: Deployment environment. Default: None
        TRACING_STRICT: Raise on annotations of ended spans. Default: False
        TRACING_SHUTDOWN_TIMEOUT: Shutdown flush timeout in seconds. Default: 5

    Args:
        dsn: Uptrace project DSN.
        service_name: Service name.
        service_version: Service version.
        deployment_environment: Deployment environment.
        resource_detectors: Detectors whose resources are merged into the service one.
        span_exporter: Exporter replacing the OTLP/HTTP exporter.
        set_global: Install the tracer provider as the global OpenTelemetry one.

    Raises:
        DSNNotFoundError: If no DSN is passed nor set in the environment.
        InvalidDSNError: If the DSN is malformed.
        TracingSettingsValidationError: If environment variables are invalid.
    """
    try:
        settings = TracingSettings()
    except ValidationError as error:
        raise TracingSettingsValidationError(error) from None

    raw_dsn = dsn or settings.UPTRACE_DSN
    if not raw_dsn:
        raise DSNNotFoundError
    parsed_dsn = parse_dsn(raw_dsn)

    attributes = {SERVICE_NAME: service_name or settings.OTEL_SERVICE_NAME}
    if version := service_version or settings.OTEL_SERVICE_VERSION:
        attributes[SERVICE_VERSION] = version
    if environment := deployment_environment or settings.DEPLOYMENT_ENVIRONMENT:
        attributes[DEPLOYMENT_ENVIRONMENT] = environment

    resource = get_aggregated_resources(
        list(resource_detectors), initial_resource=Resource.create(attributes)
    )

    if span_exporter is None:
        span_exporter = OTLPSpanExporter(
            endpoint=parsed_dsn.traces_endpoint,
            headers={"uptrace-dsn": parsed_dsn.original},
            compression=Compression.Gzip,
        )

    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(span_exporter))

    install_otel_error_handler()
    if set_global:
        trace.set_tracer_provider(provider)

    return Tracer(
        provider,
        dsn=parsed_dsn,
        strict=settings.TRACING_STRICT,
        shutdown_timeout=settings.TRACING_SHUTDOWN_TIMEOUT,
    )
