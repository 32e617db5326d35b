"""Tracing Configuration."""

from pydantic import PositiveFloat
from pydantic_settings import BaseSettings


class TracingSettings(BaseSettings):
    """Tracing Settings.

    Environment Variables:
        UPTRACE_DSN: Uptrace project DSN. Required by `configure_tracing` when no DSN
            is passed explicitly.
        OTEL_SERVICE_NAME: Service name resource attribute. Default: unknown_service
        OTEL_SERVICE_VERSION: Service version resource attribute. Default: None
        DEPLOYMENT_ENVIRONMENT: Deployment environment resource attribute. Default: None
        TRACING_STRICT: Raise when an ended span is annotated instead of logging a
            warning. Default: False
        TRACING_SHUTDOWN_TIMEOUT: Maximum time in seconds spent flushing pending spans on
            shutdown. Default: 5
    """

    UPTRACE_DSN: str | None = None
    OTEL_SERVICE_NAME: str = "unknown_service"
    OTEL_SERVICE_VERSION: str | None = None
    DEPLOYMENT_ENVIRONMENT: str | None = None
    TRACING_STRICT: bool = False
    TRACING_SHUTDOWN_TIMEOUT: PositiveFloat = 5.0
