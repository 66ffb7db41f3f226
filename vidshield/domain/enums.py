"""Domain enums for asset processing and access control.

String-valued enums so that values round-trip unchanged through the
database, the HTTP API and broadcast payloads.
"""

from enum import Enum


class AssetStatus(str, Enum):
    """Lifecycle status of an uploaded asset."""

    UPLOADED = "uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition can leave this status."""
        return self in (AssetStatus.COMPLETED, AssetStatus.FAILED)


class Classification(str, Enum):
    """Content-safety outcome assigned when processing completes."""

    UNKNOWN = "unknown"
    SAFE = "safe"
    FLAGGED = "flagged"

    def __str__(self) -> str:
        return self.value


class UserRole(str, Enum):
    """Roles an actor can hold within a tenant."""

    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"

    def __str__(self) -> str:
        return self.value


class BroadcastBackend(str, Enum):
    """Available event broadcaster implementations."""

    MEMORY = "memory"
    REDIS = "redis"

    def __str__(self) -> str:
        return self.value
