"""HTTP and WebSocket API for VidShield."""

from vidshield.api.main import create_app

__all__ = ["create_app"]
