"""Observability setup: structured logging and Logfire tracing."""

from vidshield.infrastructure.observability.logfire_setup import (
    configure_logfire,
    configure_logging,
)

__all__ = ["configure_logfire", "configure_logging"]
