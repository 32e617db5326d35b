"""Logs correlated with spans, exported to Uptrace.

Run with: UPTRACE_DSN=https://<token>@api.uptrace.dev python examples/tracing/basic.py
"""

from opentelemetry.context import Context

from tracelog.logging import configure_logging
from tracelog.tracing import SpanKind, configure_tracing

logger = configure_logging()
tracer = configure_tracing(service_name="users-api")

with tracer.start_span(Context(), "handle_request", kind=SpanKind.SERVER) as (
    ctx,
    span,
):
    # Records carry the trace_id and span_id of the span found in ctx
    logger.info(ctx, "Processing request", user_id=123, endpoint="/api/users")

    with tracer.start_span(ctx, "database_query") as (db_ctx, _):
        logger.ctx(db_ctx).info("Executing query", query="SELECT * FROM users")

    # WARNING and ERROR records are also added to the span as events
    logger.warning(ctx, "Slow request", duration_ms=1200)

    print(tracer.trace_url(span))  # noqa: T201

logger.sync()
tracer.shutdown()
