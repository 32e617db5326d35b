"""Tracelog: structured logging correlated with OpenTelemetry traces."""

__version__ = "0.1.0"
