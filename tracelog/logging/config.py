"""Logging Configuration."""

from enum import StrEnum
from typing import Annotated, Any, Self

from pydantic import BeforeValidator, Field
from pydantic_extra_types.timezone_name import (
    TimeZoneName,
    timezone_name_settings,
)
from pydantic_settings import BaseSettings

from tracelog.logging.types import Severity

try:
    import opentelemetry
except ImportError:  # pragma: no cover
    opentelemetry: Any = None


class _CaseInsensitiveEnum(StrEnum):
    @classmethod
    def _missing_(cls, value: object) -> Self | None:
        value = str(value).lower()
        for member in cls:
            if member.lower() == value:
                return member
        return None


LoggingLevelType = Annotated[Severity, BeforeValidator(Severity.parse)]


class LoggingFormatType(_CaseInsensitiveEnum):
    """Logging Format Enum."""

    JSON = "JSON"
    TEXT = "TEXT"


class LoggingBackendType(_CaseInsensitiveEnum):
    """Logging Backend Enum."""

    LOGURU = "loguru"
    STRUCTLOG = "structlog"


class LoggingSerializerType(_CaseInsensitiveEnum):
    """JSON Serializer Enum."""

    STDLIB = "stdlib"
    ORJSON = "orjson"


@timezone_name_settings(strict=False)
class LoggingTimeZoneType(TimeZoneName):
    """Timezone name."""


class LoggingSettings(BaseSettings):
    """Logging Settings.

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
    """

    LOG_BACKEND: LoggingBackendType = LoggingBackendType.LOGURU
    LOG_LEVEL: LoggingLevelType = Severity.INFO
    LOG_FORMAT: LoggingFormatType | str = Field(
        LoggingFormatType.JSON, union_mode="left_to_right"
    )
    LOG_TIMEZONE: LoggingTimeZoneType = LoggingTimeZoneType("UTC")
    LOG_JSON_SERIALIZER: LoggingSerializerType = LoggingSerializerType.STDLIB
    LOG_OTEL_ENABLED: bool = opentelemetry is not None
    LOG_OTEL_EVENT_LEVEL: LoggingLevelType = Severity.WARNING
