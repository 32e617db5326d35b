"""Logging."""

from pydantic import ValidationError

from tracelog.logging.config import LoggingBackendType, LoggingSettings
from tracelog.logging.errors import (
    InvalidSeverityError,
    LoggingSettingsValidationError,
)
from tracelog.logging.logger import ContextLogger, Logger
from tracelog.logging.types import JSONRecordDict, LogSink, Severity


def configure_logging() -> Logger:
    """Configure logging with the selected backend and return a `Logger`.

    Simple twelve-factor app logging configuration that logs to stdout. Calling it
    again replaces the previously configured sink.

    Environment Variables:
        LOG_BACKEND: Logging backend (loguru, structlog). Default: loguru
        LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR). Default: INFO
        LOG_FORMAT: Log format (JSON, TEXT, or custom template). Default: JSON
        LOG_TIMEZONE: IANA timezone for timestamps (e.g., "UTC", "Europe/Zurich"). Default: UTC
        LOG_JSON_SERIALIZER: JSON serializer (stdlib, orjson). Default: stdlib
        LOG_OTEL_ENABLED: Enable OpenTelemetry trace context extraction.
            Default: True if OpenTelemetry is installed, else False.
        LOG_OTEL_EVENT_LEVEL: Minimum level of the records also added as span events.
            Default: WARNING

    Raises:
        DependencyNotFoundError: If the selected backend module is not installed.
        LoggingSettingsValidationError: If environment variables are invalid.
    """
    try:
        settings = LoggingSettings()
    except ValidationError as error:
        raise LoggingSettingsValidationError(error) from None

    sink: LogSink
    if settings.LOG_BACKEND == LoggingBackendType.STRUCTLOG:
        from tracelog.logging._structlog import (  # noqa: PLC0415
            configure_logging as configure_structlog,
        )

        sink = configure_structlog()
    else:
        from tracelog.logging._loguru import (  # noqa: PLC0415
            configure_logging as configure_loguru,
        )

        sink = configure_loguru()

    return Logger(
        sink,
        level=settings.LOG_LEVEL,
        event_level=settings.LOG_OTEL_EVENT_LEVEL,
        otel_enabled=settings.LOG_OTEL_ENABLED,
    )


__all__ = [
    "ContextLogger",
    "InvalidSeverityError",
    "JSONRecordDict",
    "LogSink",
    "Logger",
    "Severity",
    "configure_logging",
]
