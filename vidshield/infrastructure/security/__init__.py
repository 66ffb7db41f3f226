"""Security infrastructure."""

from vidshield.infrastructure.security.jwt_service import JWTService, TokenPayload

__all__ = ["JWTService", "TokenPayload"]
