"""Demo.

A chain of arithmetic calls, each in its own span, logging through the span context.
"""

import typer
from opentelemetry.context import Context

from tracelog.errorhandler import set_error_handler
from tracelog.errors import SettingsValidationError, TracelogError
from tracelog.logging import Logger, Severity, configure_logging
from tracelog.tracing import (
    DSNNotFoundError,
    InvalidDSNError,
    SpanKind,
    StatusCode,
    Tracer,
    configure_tracing,
)

SERVICE_NAME = "otlp-example-uptrace"
SERVICE_VERSION = "v1.0.0"
DEPLOYMENT_ENVIRONMENT = "production"


class DemoService:
    """Arithmetic service instrumented with spans and span-correlated logs."""

    def __init__(self, logger: Logger, tracer: Tracer) -> None:
        self.logger = logger
        self.tracer = tracer

    def add(self, ctx: Context, x: int, y: int) -> int:
        with self.tracer.start_span(ctx, "Addition"):
            return x + y

    def multiply(self, ctx: Context, x: int, y: int) -> int:
        with self.tracer.start_span(
            ctx, "Multiplication", kind=SpanKind.SERVER
        ) as (ctx, _):
            self.logger.ctx(ctx).info("multiply", x=x, y=y)
            return x * y

    def get_database_user(self, ctx: Context, email: str) -> int:
        with self.tracer.start_span(
            ctx, "getDatabaseUser", kind=SpanKind.SERVER
        ) as (ctx, _):
            self.logger.ctx(ctx).info("getDatabaseUser INFO", email=email)
            self.logger.info(ctx, "getDatabaseUser INFO2", email=email)
            self.logger.ctx(ctx).error("getDatabaseUser ERR", email=email)
            return 42

    def get_user(self, ctx: Context, email: str) -> int:
        with self.tracer.start_span(ctx, "getUser", kind=SpanKind.SERVER) as (
            ctx,
            _,
        ):
            return self.get_database_user(ctx, email)

    def some_func_with_error(self, ctx: Context) -> None:
        with self.tracer.start_span(ctx, "someFuncWithError") as (_, span):
            error = RuntimeError("dummy error")
            self.tracer.record_error(span, error, capture_stack=True)
            self.tracer.set_status(span, StatusCode.ERROR, str(error))

    def run(self, ctx: Context) -> str:
        """Run the whole demo under a `main` root span and return its trace URL."""
        with self.tracer.start_span(ctx, "main") as (ctx, span):
            log = self.logger.ctx(ctx)
            log.error(
                "hello from tracelog", error=ValueError("hello world"), foo="bar"
            )

            log.info("This is an INFO")
            log.warning("This is a WARN")
            log.error("This is an ERROR")

            log.info("starting the application")
            log.info(
                "getting the user", get_user=self.get_user(ctx, "haha@bla.com")
            )
            log.info(
                "the answer is",
                multi_result=self.add(
                    ctx, self.multiply(ctx, self.multiply(ctx, 2, 2), 10), 2
                ),
            )
            self.some_func_with_error(ctx)

            return self.tracer.trace_url(span)


app = typer.Typer(add_completion=False)


@app.command()
def main() -> None:
    """Run the demo and print the URL of its trace."""
    try:
        logger = configure_logging()
    except TracelogError as error:
        typer.echo(f"error: {error}", err=True)
        raise typer.Exit(code=1) from None

    # Span events for INFO records, WARNING only by default
    logger.set_event_level(Severity.INFO)
    set_error_handler(lambda error: typer.echo(f"otel - error: {error}"))

    typer.echo(logger.level.name)
    try:
        tracer = configure_tracing(
            service_name=SERVICE_NAME,
            service_version=SERVICE_VERSION,
            deployment_environment=DEPLOYMENT_ENVIRONMENT,
        )
    except DSNNotFoundError:
        typer.echo("warn: UPTRACE_DSN not set")
        raise typer.Exit(code=1) from None
    except (InvalidDSNError, SettingsValidationError) as error:
        typer.echo(f"error: {error}", err=True)
        raise typer.Exit(code=1) from None

    try:
        url = DemoService(logger, tracer).run(Context())
        typer.echo(f"trace: {url}")
    finally:
        logger.sync()
        tracer.shutdown()
