"""Context-Aware Logger."""

import threading
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from tracelog.errorhandler import handle_error
from tracelog.logging._shared import get_otel_trace_context, has_opentelemetry
from tracelog.logging.types import LogSink, Severity

if TYPE_CHECKING:
    from opentelemetry.context import Context
    from opentelemetry.util.types import AttributeValue

try:
    from opentelemetry import trace
    from opentelemetry.trace import Status, StatusCode
except ImportError:  # pragma: no cover
    trace: Any = None

_ATTRIBUTE_TYPES = (str, bool, int, float)


def _to_attribute(value: object) -> "AttributeValue":
    if isinstance(value, _ATTRIBUTE_TYPES):
        return value
    return str(value)


class Logger:
    """Logger taking an OpenTelemetry context on every call.

    Records carry the trace and span ids of the span found in the context. Records at
    or above `event_level` are also added as `log` events to that span, and records at
    `ERROR` mark the span as failed.

    The minimum severity can be changed at any time with `set_level`, from any thread.

    Usage:
        logger = configure_logging()
        logger.info(ctx, "Processing order", order_id=42)
        logger.ctx(ctx).warning("Order is late", order_id=42)
    """

    def __init__(
        self,
        sink: LogSink,
        *,
        level: Severity | int | str = Severity.INFO,
        event_level: Severity | int | str = Severity.WARNING,
        otel_enabled: bool = True,
    ) -> None:
        """Initialize the logger.

        Raises:
            InvalidSeverityError: If a level is not a known severity.
        """
        self._sink = sink
        self._lock = threading.Lock()
        self._level = Severity.parse(level)
        self._event_level = Severity.parse(event_level)
        self._otel_enabled = otel_enabled and has_opentelemetry()

    @property
    def level(self) -> Severity:
        """Return the minimum severity of emitted records."""
        return self._level

    @property
    def event_level(self) -> Severity:
        """Return the minimum severity of records added as span events."""
        return self._event_level

    def set_level(self, level: Severity | int | str) -> None:
        """Replace the minimum severity of emitted records.

        Raises:
            InvalidSeverityError: If the level is not a known severity. The current
                level is left unchanged.
        """
        severity = Severity.parse(level)
        with self._lock:
            self._level = severity

    def set_event_level(self, level: Severity | int | str) -> None:
        """Replace the minimum severity of records added as span events.

        Raises:
            InvalidSeverityError: If the level is not a known severity.
        """
        severity = Severity.parse(level)
        with self._lock:
            self._event_level = severity

    def is_enabled_for(self, severity: Severity) -> bool:
        """Check if records of this severity are emitted."""
        return severity >= self._level

    def ctx(self, context: "Context | None") -> "ContextLogger":
        """Return a logger bound to a context."""
        return ContextLogger(self, context)

    def log(
        self,
        context: "Context | None",
        severity: Severity | int | str,
        msg: str,
        /,
        **fields: Any,
    ) -> None:
        """Log a message with the given severity."""
        self._log(context, Severity.parse(severity), msg, fields)

    def debug(
        self, context: "Context | None", msg: str, /, **fields: Any
    ) -> None:
        """Log a DEBUG message."""
        self._log(context, Severity.DEBUG, msg, fields)

    def info(
        self, context: "Context | None", msg: str, /, **fields: Any
    ) -> None:
        """Log an INFO message."""
        self._log(context, Severity.INFO, msg, fields)

    def warning(
        self, context: "Context | None", msg: str, /, **fields: Any
    ) -> None:
        """Log a WARNING message."""
        self._log(context, Severity.WARNING, msg, fields)

    def error(
        self, context: "Context | None", msg: str, /, **fields: Any
    ) -> None:
        """Log an ERROR message."""
        self._log(context, Severity.ERROR, msg, fields)

    def sync(self) -> None:
        """Flush the sink. Failures are reported to the error handler."""
        try:
            self._sink.flush()
        except (OSError, ValueError) as error:
            handle_error(error)

    def _log(
        self,
        context: "Context | None",
        severity: Severity,
        msg: str,
        fields: Mapping[str, Any],
    ) -> None:
        # Public logging methods call this directly: the call site is two frames up
        if severity < self._level:
            return

        trace_context: Mapping[str, str] = {}
        if self._otel_enabled:
            trace_context = get_otel_trace_context(context)
            if severity >= self._event_level:
                self._add_span_event(context, severity, msg, fields)

        try:
            self._sink.write(severity, msg, fields, trace_context, depth=2)
        except (OSError, ValueError) as error:
            handle_error(error)

    def _add_span_event(
        self,
        context: "Context | None",
        severity: Severity,
        msg: str,
        fields: Mapping[str, Any],
    ) -> None:
        span = trace.get_current_span(context)
        if not span.is_recording():
            return

        attributes: dict[str, AttributeValue] = {
            "log.severity": severity.name,
            "log.message": msg,
        }
        for key, value in fields.items():
            if isinstance(value, Exception):
                span.record_exception(value)
            else:
                attributes[key] = _to_attribute(value)
        span.add_event("log", attributes)

        if severity >= Severity.ERROR:
            span.set_status(Status(StatusCode.ERROR, msg))


class ContextLogger:
    """Logger bound to a context, returned by `Logger.ctx`."""

    def __init__(self, logger: Logger, context: "Context | None") -> None:
        self._logger = logger
        self._context = context

    def log(
        self, severity: Severity | int | str, msg: str, /, **fields: Any
    ) -> None:
        """Log a message with the given severity."""
        self._logger._log(self._context, Severity.parse(severity), msg, fields)  # noqa: SLF001

    def debug(self, msg: str, /, **fields: Any) -> None:
        """Log a DEBUG message."""
        self._logger._log(self._context, Severity.DEBUG, msg, fields)  # noqa: SLF001

    def info(self, msg: str, /, **fields: Any) -> None:
        """Log an INFO message."""
        self._logger._log(self._context, Severity.INFO, msg, fields)  # noqa: SLF001

    def warning(self, msg: str, /, **fields: Any) -> None:
        """Log a WARNING message."""
        self._logger._log(self._context, Severity.WARNING, msg, fields)  # noqa: SLF001

    def error(self, msg: str, /, **fields: Any) -> None:
        """Log an ERROR message."""
        self._logger._log(self._context, Severity.ERROR, msg, fields)  # noqa: SLF001
