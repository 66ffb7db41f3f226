"""JWT service for bearer-token authentication."""

from datetime import UTC, datetime, timedelta
from typing import Optional

import jwt
from pydantic import BaseModel, ValidationError

from vidshield.domain.enums import UserRole
from vidshield.domain.models.actor import Actor
from vidshield.infrastructure.config import SecurityConfig


class TokenPayload(BaseModel):
    """JWT token payload structure."""

    sub: str  # user_id
    org: str  # tenant_id
    role: UserRole
    type: str
    exp: datetime
    iat: datetime

    def to_actor(self) -> Actor:
        return Actor(user_id=self.sub, tenant_id=self.org, role=self.role)


class JWTService:
    """Creates and validates access tokens.

    Tokens are normally minted by the identity service; ``create_access_token``
    exists for tooling and tests.
    """

    def __init__(self, config: SecurityConfig):
        """Initialize with security settings."""
        self.secret_key = config.jwt_secret_key.get_secret_value()
        self.algorithm = config.jwt_algorithm
        self.access_token_expiry = config.jwt_expiration_minutes * 60

    def create_access_token(
        self,
        user_id: str,
        tenant_id: str,
        role: UserRole | str,
        expiry_seconds: Optional[int] = None,
    ) -> str:
        """Create access token for an actor."""
        now = datetime.now(UTC)
        expiry = now + timedelta(
            seconds=self.access_token_expiry if expiry_seconds is None else expiry_seconds
        )

        payload = {
            "sub": str(user_id),
            "org": str(tenant_id),
            "role": str(role),
            "type": "access",
            "iat": now,
            "exp": expiry,
        }

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_access_token(self, token: str) -> Optional[TokenPayload]:
        """Verify and decode access token."""
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "org", "role", "type", "exp", "iat"]},
            )

            # Verify token type
            if payload.get("type") != "access":
                return None

            return TokenPayload(**payload)

        except jwt.InvalidTokenError:
            return None
        except ValidationError:
            return None

    def authenticate(self, token: str) -> Optional[Actor]:
        """Resolve a raw token to the actor it represents."""
        payload = self.verify_access_token(token)
        return payload.to_actor() if payload else None
