"""Telemetry Error Handler.

Errors raised by the telemetry pipeline (exporters, span processors, log sinks)
must never change the outcome of the instrumented code. They are routed to a
single process-wide handler instead of being raised.

OpenTelemetry for Python reports its internal errors through the standard library
`logging` module, so `install_otel_error_handler` bridges the `opentelemetry`
logger to the handler.
"""

import logging
import sys
import threading
from collections.abc import Callable

ErrorHandler = Callable[[BaseException], None]

_lock = threading.Lock()


def _default_error_handler(error: BaseException) -> None:
    print(f"tracelog - error: {error}", file=sys.stderr)  # noqa: T201


_handler: ErrorHandler = _default_error_handler


def set_error_handler(handler: ErrorHandler | None) -> None:
    """Set the process-wide error handler.

    Args:
        handler: Callable receiving each error. None restores the default handler,
            which prints to stderr.
    """
    global _handler  # noqa: PLW0603
    with _lock:
        _handler = handler or _default_error_handler


def get_error_handler() -> ErrorHandler:
    """Return the process-wide error handler."""
    return _handler


def handle_error(error: BaseException) -> None:
    """Report an error to the process-wide handler.

    A failing handler falls back to the default one, so this never raises.
    """
    handler = _handler
    try:
        handler(error)
    except Exception as handler_error:  # noqa: BLE001
        _default_error_handler(handler_error)
        _default_error_handler(error)


class OTelErrorLogHandler(logging.Handler):
    """Logging handler forwarding OpenTelemetry error records to `handle_error`."""

    def __init__(self) -> None:
        super().__init__(level=logging.ERROR)

    def emit(self, record: logging.LogRecord) -> None:
        """Forward the record as an exception."""
        if record.exc_info and record.exc_info[1] is not None:
            error: BaseException = record.exc_info[1]
        else:
            error = RuntimeError(record.getMessage())
        handle_error(error)


def install_otel_error_handler(
    logger_name: str = "opentelemetry",
) -> OTelErrorLogHandler:
    """Attach an `OTelErrorLogHandler` to the OpenTelemetry logger.

    Installing twice is a no-op: the existing handler is returned.
    """
    logger = logging.getLogger(logger_name)
    for existing in logger.handlers:
        if isinstance(existing, OTelErrorLogHandler):
            return existing
    handler = OTelErrorLogHandler()
    logger.addHandler(handler)
    return handler
