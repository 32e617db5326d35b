"""Tracing Errors."""

from tracelog.errors import SettingsValidationError, TracelogError


class TracingSettingsValidationError(SettingsValidationError):
    """Tracing Settings Validation Error."""


class DSNNotFoundError(TracelogError):
    """DSN Not Found Error.

    Raised when tracing is configured without a DSN, before any span is created.
    """

    def __init__(self, env: str = "UPTRACE_DSN") -> None:
        """Initialize the error."""
        super().__init__(f"{env} not set")
        self.env = env


class InvalidDSNError(TracelogError, ValueError):
    """Invalid DSN Error."""

    def __init__(self, dsn: str, reason: str) -> None:
        """Initialize the error.

        The DSN secret is not included in the message.
        """
        super().__init__(f"Invalid DSN: {reason}")
        self.dsn = dsn
        self.reason = reason


class SpanEndedError(TracelogError, RuntimeError):
    """Span Ended Error.

    Raised by a strict tracer when an ended span is annotated.
    """

    def __init__(self, span_name: str, operation: str) -> None:
        """Initialize the error."""
        super().__init__(f"Cannot {operation} on ended span '{span_name}'")
        self.span_name = span_name
        self.operation = operation
