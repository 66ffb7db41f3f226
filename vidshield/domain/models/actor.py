"""Authenticated actor acting on behalf of a tenant."""

from dataclasses import dataclass

from vidshield.domain.enums import UserRole
from vidshield.domain.exceptions import UnauthorizedOperation


UPLOAD_ROLES = frozenset({UserRole.ADMIN, UserRole.EDITOR})


@dataclass(frozen=True)
class Actor:
    """Identity extracted from a verified access token."""

    user_id: str
    tenant_id: str
    role: UserRole

    @property
    def can_upload(self) -> bool:
        return self.role in UPLOAD_ROLES

    def require_role(self, operation: str, *roles: UserRole) -> None:
        """Raise unless the actor holds one of ``roles``."""
        if self.role not in roles:
            allowed = ", ".join(str(r) for r in roles)
            raise UnauthorizedOperation(
                operation,
                f"role '{self.role}' is not one of: {allowed}",
                user_id=self.user_id,
            )
