"""Logging Errors."""

from tracelog.errors import SettingsValidationError, TracelogError


class LoggingSettingsValidationError(SettingsValidationError):
    """Logging Settings Validation Error."""


class InvalidSeverityError(TracelogError, ValueError):
    """Invalid Severity Error.

    Raised when a log level cannot be mapped to a known severity.
    """

    def __init__(self, level: object) -> None:
        """Initialize the error."""
        super().__init__(
            f"Invalid severity {level!r}, "
            "expected one of DEBUG, INFO, WARNING or ERROR"
        )
        self.level = level
