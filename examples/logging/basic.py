from opentelemetry.context import Context

from tracelog.logging import Severity, configure_logging

logger = configure_logging()
ctx = Context()

logger.debug(ctx, "This is a debug message")
logger.info(ctx, "This is an info message")
logger.warning(ctx, "This is a warning message with context", user="Alice")
logger.error(ctx, "This is an error message with context", user="Bob")

try:
    raise ValueError("This is an exception message")
except ValueError as error:
    logger.error(
        ctx, "This is an exception message with context", error=error, user="Charlie"
    )

logger.set_level(Severity.DEBUG)
logger.debug(ctx, "Debug messages are now written")

logger.sync()
