"""Loguru Logging Backend."""

import sys
from collections.abc import Callable, Mapping
from datetime import UTC, tzinfo
from typing import TYPE_CHECKING, Any

from tracelog.logging._shared import load_settings
from tracelog.logging.config import LoggingFormatType
from tracelog.logging.types import JSONRecordDict, Severity

try:
    import loguru
except ImportError as exc:  # pragma: no cover
    msg = "loguru is required for the loguru logging backend"
    raise ImportError(msg) from exc

if TYPE_CHECKING:
    from loguru import FormatFunction, Logger, Record


JSON_FORMAT = "{extra[serialized]}"
TEXT_FORMAT = (
    "<green>{extra[localtime]}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - {message}"
)

# Keys never copied into the JSON `ctx` object
_RESERVED_KEYS = {
    "serialized",
    "localtime",
    "trace_id",
    "span_id",
}


class LoguruPatcher:
    """Patcher enriching loguru records before they reach the sinks."""

    def __init__(
        self,
        *,
        timezone: tzinfo | None = None,
        json_dumps: Callable[[Mapping[str, Any]], str],
        enable_localtime: bool = False,
        enable_json: bool = False,
    ) -> None:
        self.timezone: tzinfo = timezone or UTC
        self.json_dumps = json_dumps
        self.enable_localtime = enable_localtime
        self.enable_json = enable_json

    def __call__(self, record: "Record") -> None:
        if self.enable_localtime:
            _localtime_patcher(record, timezone=self.timezone)
        if self.enable_json:
            _json_patcher(
                record, json_dumps=self.json_dumps, timezone=self.timezone
            )


def _json_patcher(
    record: "Record",
    *,
    json_dumps: Callable[[Mapping[str, Any]], str],
    timezone: tzinfo | None = None,
) -> None:
    """Patch the record with JSON serialization."""
    json_record = JSONRecordDict(
        time=record["time"].astimezone(timezone or UTC).isoformat(),
        level=record["level"].name,
        thread=record["thread"].name,
        logger=f"{record['name']}:{record['function']}:{record['line']}",
        msg=record["message"],
    )

    # Trace fields go to the top level
    if "trace_id" in record["extra"]:
        json_record["trace_id"] = record["extra"]["trace_id"]
    if "span_id" in record["extra"]:
        json_record["span_id"] = record["extra"]["span_id"]

    ctx = {k: v for k, v in record["extra"].items() if k not in _RESERVED_KEYS}
    exception = record["exception"]

    if exception and exception.type:
        ctx["exception"] = f"{exception.type.__name__}: {exception.value!s}"

    if ctx:
        json_record["ctx"] = ctx

    record["extra"]["serialized"] = json_dumps(json_record)


def _localtime_patcher(
    record: "Record",
    *,
    timezone: tzinfo | None = None,
) -> None:
    """Patch the record with localized time (format: YYYY-MM-DD HH:MM:SS.mmm)."""
    record["extra"]["localtime"] = (
        record["time"]
        .astimezone(timezone or UTC)
        .strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
    )


def _json_formatter(_record: "Record") -> str:
    """Format log record as JSON.

    Note: This is a format function (not a string) to suppress loguru's automatic
    traceback appending. Exceptions are captured in the `ctx` field instead.
    """
    return JSON_FORMAT + "\n"


class LoguruSink:
    """Log sink writing through the loguru logger."""

    def __init__(self, logger: "Logger | None" = None) -> None:
        self._logger = logger or loguru.logger

    def write(
        self,
        severity: Severity,
        msg: str,
        fields: Mapping[str, Any],
        trace_context: Mapping[str, str],
        *,
        depth: int = 0,
    ) -> None:
        """Write a record, attributing it to the frame `depth` levels above the caller."""
        exception = next(
            (v for v in fields.values() if isinstance(v, BaseException)), None
        )
        self._logger.opt(depth=depth + 1, exception=exception).bind(
            **{**fields, **trace_context}
        ).log(severity.name, msg)

    def flush(self) -> None:
        """Wait for enqueued messages and flush stdout."""
        self._logger.complete()
        sys.stdout.flush()


def configure_logging() -> LoguruSink:
    """Configure logging with loguru.

    Simple twelve-factor app logging configuration that logs to stdout.
    Filtering is left to the `Logger`, so the sink accepts every severity.

    Environment Variables:
        LOG_FORMAT: Log format (JSON, TEXT, or custom template). Default: JSON
        LOG_TIMEZONE: IANA timezone for timestamps (e.g., "UTC", "Europe/Zurich"). Default: UTC
        LOG_JSON_SERIALIZER: JSON serializer (stdlib, orjson). Default: stdlib
        LOG_OTEL_ENABLED: Enable OpenTelemetry trace context extraction.
            Default: True if OpenTelemetry is installed, else False.

    Raises:
        DependencyNotFoundError: If orjson or OpenTelemetry is enabled but not installed.
        LoggingSettingsValidationError: If environment variables are invalid.
    """
    settings, timezone, use_json, json_dumps = load_settings()

    logger = loguru.logger
    log_format: str | FormatFunction = settings.LOG_FORMAT
    needs_json = False
    needs_localtime = False

    if use_json or log_format.strip() == JSON_FORMAT:
        log_format = _json_formatter
        needs_json = True
    elif log_format == LoggingFormatType.TEXT:
        log_format = TEXT_FORMAT
        needs_localtime = True
    else:
        needs_json = "extra[serialized]" in log_format
        needs_localtime = "extra[localtime]" in log_format

    # Always replace the patcher, loguru keeps the previous one otherwise
    patcher = LoguruPatcher(
        timezone=timezone,
        json_dumps=json_dumps,
        enable_localtime=needs_localtime,
        enable_json=needs_json,
    )
    logger.configure(patcher=patcher)

    logger.remove()
    logger.add(
        sys.stdout,
        level=Severity.DEBUG.name,
        format=log_format,
    )
    return LoguruSink(logger)
