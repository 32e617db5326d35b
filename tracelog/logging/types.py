"""Logging types."""

from collections.abc import Mapping
from enum import IntEnum
from typing import Any, NotRequired, Protocol, Self

from typing_extensions import TypedDict

from tracelog.logging.errors import InvalidSeverityError

_SEVERITY_ALIASES = {"WARN": "WARNING"}


class Severity(IntEnum):
    """Log severity, ordered from the least to the most severe.

    Values match the standard library `logging` levels.
    """

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    @classmethod
    def parse(cls, value: object) -> Self:
        """Parse a severity from a member, a level number or a case-insensitive name.

        Raises:
            InvalidSeverityError: If the value does not match any severity.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise InvalidSeverityError(value) from None
        if isinstance(value, str):
            name = value.strip().upper()
            name = _SEVERITY_ALIASES.get(name, name)
            try:
                return cls[name]
            except KeyError:
                raise InvalidSeverityError(value) from None
        raise InvalidSeverityError(value)


class JSONRecordDict(TypedDict):
    """JSON log record representation.

    The time use a ISO 8601 string.
    """

    time: str
    level: str
    msg: str
    logger: str | None
    thread: str
    trace_id: NotRequired[str]
    span_id: NotRequired[str]
    ctx: NotRequired[dict[Any, Any]]


class LogSink(Protocol):
    """Destination of the records accepted by a `Logger`.

    The sink receives records that already passed the severity filter.
    """

    def write(
        self,
        severity: Severity,
        msg: str,
        fields: Mapping[str, Any],
        trace_context: Mapping[str, str],
        *,
        depth: int = 0,
    ) -> None:
        """Write a single record.

        Args:
            severity: Severity of the record.
            msg: Message.
            fields: Structured fields, in call order.
            trace_context: `trace_id` and `span_id` of the active span, may be empty.
            depth: Number of frames between the caller of `write` and the logging
                call site.
        """

    def flush(self) -> None:
        """Flush buffered records."""
