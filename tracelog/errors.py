"""Tracelog Errors."""

from pydantic import ValidationError


class TracelogError(Exception):
    """Base Tracelog error."""


class DependencyNotFoundError(TracelogError, ImportError):
    """Dependency Not Found Error.

    Raised when an optional module is enabled by configuration but is not installed.
    """

    def __init__(self, *, module: str) -> None:
        """Initialize the error."""
        super().__init__(
            f"Could not import module {module}, try running 'pip install {module}'"
        )
        self.module = module


class SettingsValidationError(TracelogError, ValueError):
    """Settings Validation Error.

    Wraps a pydantic `ValidationError` raised while reading settings from
    environment variables, with one line per invalid variable.
    """

    def __init__(self, error: ValidationError | str) -> None:
        """Initialize the error."""
        if isinstance(error, ValidationError):
            details = "\n".join(
                f"- {'.'.join(str(loc) for loc in err['loc'])}: "
                f"{err['msg']} [input={err['input']}]"
                for err in error.errors()
            )
        else:
            details = error

        super().__init__(
            f"Could not validate environment variables settings:\n{details}"
        )
