"""API routers."""

from vidshield.api.routes import assets, events, health

__all__ = ["assets", "events", "health"]
