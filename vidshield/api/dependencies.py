"""FastAPI dependencies.

Resolve the application's service container and authenticate callers,
keeping API concerns separate from infrastructure and business logic.
"""

from typing import Annotated, Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.requests import HTTPConnection

from vidshield.api.exceptions import AuthenticationError, AuthorizationError
from vidshield.api.lifespan import ServiceContainer
from vidshield.application.services.asset_service import AssetService
from vidshield.domain.enums import UserRole
from vidshield.domain.models.actor import Actor

bearer_scheme = HTTPBearer(auto_error=False)


def get_container(connection: HTTPConnection) -> ServiceContainer:
    """Get the container built by the application lifespan."""
    return connection.app.state.container


def get_asset_service(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> AssetService:
    return container.asset_service


async def get_current_actor(
    container: Annotated[ServiceContainer, Depends(get_container)],
    credentials: Annotated[
        Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)
    ],
) -> Actor:
    """Authenticate the bearer token of the request.

    Raises:
        AuthenticationError: Token missing, expired or malformed
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Bearer token is required")

    actor = container.jwt_service.authenticate(credentials.credentials)
    if actor is None:
        raise AuthenticationError("Invalid or expired token")
    return actor


def require_roles(*roles: UserRole) -> Callable[..., Actor]:
    """Build a dependency that only admits actors holding one of ``roles``."""

    async def dependency(
        actor: Annotated[Actor, Depends(get_current_actor)],
    ) -> Actor:
        if actor.role not in roles:
            raise AuthorizationError(
                "Insufficient permissions",
                details={
                    "required_roles": [str(r) for r in roles],
                    "role": str(actor.role),
                },
            )
        return actor

    return dependency


CurrentActor = Annotated[Actor, Depends(get_current_actor)]
Uploader = Annotated[Actor, Depends(require_roles(UserRole.ADMIN, UserRole.EDITOR))]
Admin = Annotated[Actor, Depends(require_roles(UserRole.ADMIN))]
AssetServiceDep = Annotated[AssetService, Depends(get_asset_service)]
