"""Structlog Logging Backend."""

import sys
import threading
from collections.abc import Mapping
from datetime import UTC, datetime, tzinfo
from typing import Any

from tracelog.logging._shared import (
    has_orjson,
    load_settings,
)
from tracelog.logging.config import LoggingSerializerType
from tracelog.logging.types import JSONRecordDict, Severity

try:
    import structlog
    from structlog.types import EventDict, Processor, WrappedLogger
except ImportError as exc:  # pragma: no cover
    msg = "structlog is required for the structlog logging backend"
    raise ImportError(msg) from exc

try:
    import orjson

    def _orjson_dumps(
        obj: dict[str, Any],
        **_kwargs: object,
    ) -> bytes:
        """Serialize to JSON bytes using orjson."""
        return orjson.dumps(obj, default=str)

except ImportError:  # pragma: no cover
    _orjson_dumps = None  # type: ignore[assignment]


# Record fields travel under this key so they never collide with structlog's
# `event` argument or with the keys added by the processors
FIELDS_KEY = "_fields"


def _add_timestamp(
    timezone: tzinfo,
) -> Processor:
    """Create a processor that adds ISO 8601 timestamp."""

    def processor(
        _logger: WrappedLogger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict["time"] = datetime.now(UTC).astimezone(timezone).isoformat()
        return event_dict

    return processor


def _add_level(
    _logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add log level to event dict."""
    event_dict["level"] = method_name.upper()
    return event_dict


def _add_thread_name(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add thread name to event dict."""
    event_dict["thread"] = threading.current_thread().name
    return event_dict


def _add_logger_info(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Add logger info in module:function:line format.

    The call site keys are populated by `CallsiteParameterAdder`.
    """
    module = event_dict.pop("module", None)
    func = event_dict.pop("func_name", None)
    lineno = event_dict.pop("lineno", None)
    if module and func and lineno:
        event_dict["logger"] = f"{module}:{func}:{lineno}"
    else:
        event_dict["logger"] = None
    return event_dict


def _unpack_fields(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Move record fields to the top level for the console renderer.

    A field named like a key already set gets a trailing underscore.
    """
    for key, value in event_dict.pop(FIELDS_KEY, {}).items():
        name = key
        while name in event_dict:
            name = f"{name}_"
        event_dict[name] = value
    return event_dict


def _build_json_record(
    _logger: WrappedLogger,
    _method_name: str,
    event_dict: EventDict,
) -> JSONRecordDict:
    """Build JSONRecordDict from event dict."""
    reserved_keys = {
        "time",
        "level",
        "thread",
        "logger",
        "event",
        "trace_id",
        "span_id",
        FIELDS_KEY,
    }

    ctx = {k: v for k, v in event_dict.items() if k not in reserved_keys}
    ctx.update(event_dict.get(FIELDS_KEY, {}))

    json_record = JSONRecordDict(
        time=event_dict["time"],
        level=event_dict["level"],
        thread=event_dict["thread"],
        logger=event_dict["logger"],
        msg=event_dict.get("event", ""),
    )

    if "trace_id" in event_dict:
        json_record["trace_id"] = event_dict["trace_id"]
    if "span_id" in event_dict:
        json_record["span_id"] = event_dict["span_id"]

    exception = next(
        (v for v in ctx.values() if isinstance(v, BaseException)), None
    )
    if exception is not None:
        ctx["exception"] = f"{type(exception).__name__}: {exception!s}"

    if ctx:
        json_record["ctx"] = ctx

    return json_record


class StructlogSink:
    """Log sink writing through a structlog bound logger."""

    def __init__(self, logger: Any = None) -> None:
        self._logger = logger or structlog.get_logger()

    def write(
        self,
        severity: Severity,
        msg: str,
        fields: Mapping[str, Any],
        trace_context: Mapping[str, str],
        *,
        depth: int = 0,  # noqa: ARG002
    ) -> None:
        """Write a record.

        Call site detection skips the `tracelog.logging` frames, so `depth` is not needed.
        """
        method = getattr(self._logger, severity.name.lower())
        method(msg, **{FIELDS_KEY: dict(fields)}, **trace_context)

    def flush(self) -> None:
        """Flush stdout."""
        sys.stdout.flush()


def configure_logging() -> StructlogSink:
    """Configure logging with structlog.

    Simple twelve-factor app logging configuration that logs to stdout.
    Filtering is left to the `Logger`, so the sink accepts every severity.

    Environment Variables:
        LOG_FORMAT: Log format (JSON, TEXT). Default: JSON
        LOG_TIMEZONE: IANA timezone for timestamps (e.g., "UTC", "Europe/Zurich"). Default: UTC
        LOG_JSON_SERIALIZER: JSON serializer (stdlib, orjson). Default: stdlib
        LOG_OTEL_ENABLED: Enable OpenTelemetry trace context extraction.
            Default: True if OpenTelemetry is installed, else False.

    Raises:
        DependencyNotFoundError: If orjson or OpenTelemetry is enabled but not installed.
        LoggingSettingsValidationError: If environment variables are invalid.
    """
    settings, timezone, use_json, _ = load_settings()

    processors: list[Processor] = [
        structlog.processors.CallsiteParameterAdder(
            [
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
            additional_ignores=["tracelog.logging"],
        ),
        structlog.contextvars.merge_contextvars,
        _add_timestamp(timezone),
        _add_level,
        _add_thread_name,
        _add_logger_info,
    ]

    if use_json:
        processors.append(_build_json_record)
        if (
            settings.LOG_JSON_SERIALIZER == LoggingSerializerType.ORJSON
            and has_orjson()
        ):
            processors.append(
                structlog.processors.JSONRenderer(serializer=_orjson_dumps)
            )
            logger_factory: Any = structlog.BytesLoggerFactory(
                file=sys.stdout.buffer
            )
        else:
            processors.append(structlog.processors.JSONRenderer(default=str))
            logger_factory = structlog.PrintLoggerFactory(file=sys.stdout)
    else:
        # TEXT format or custom format - use ConsoleRenderer
        processors.append(_unpack_fields)
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
            )
        )
        logger_factory = structlog.PrintLoggerFactory(file=sys.stdout)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(Severity.DEBUG),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=False,
    )
    return StructlogSink(structlog.get_logger())
