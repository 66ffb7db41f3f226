"""API middleware."""

from vidshield.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
