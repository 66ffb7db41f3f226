"""Ports the processing core depends on.

Infrastructure adapters implement these protocols; the pipeline and the
asset service only ever see the protocol types.
"""

from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Dict,
    List,
    Optional,
    Protocol,
    Union,
)
from uuid import UUID

from vidshield.domain.enums import AssetStatus, Classification
from vidshield.domain.events import BroadcastMessage
from vidshield.domain.models.asset import Asset


class AssetStore(Protocol):
    """Durable storage of asset records."""

    async def get(self, asset_id: UUID) -> Optional[Asset]:
        """Get an asset by ID."""
        ...

    async def add(self, asset: Asset) -> Asset:
        """Insert a new asset record."""
        ...

    async def update(
        self,
        asset_id: UUID,
        changes: Dict[str, Any],
        *,
        expected_status: Optional[AssetStatus] = None,
    ) -> Optional[Asset]:
        """Apply ``changes`` and return the persisted asset.

        Returns None when the record does not exist. Raises
        ConcurrentUpdateError when ``expected_status`` does not match.
        """
        ...

    async def list_by_tenant(
        self,
        tenant_id: str,
        *,
        status: Optional[AssetStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Asset]:
        """List a tenant's assets, newest first."""
        ...

    async def count_by_tenant(
        self, tenant_id: str, *, status: Optional[AssetStatus] = None
    ) -> int:
        """Count a tenant's assets."""
        ...

    async def delete(self, asset_id: UUID) -> bool:
        """Delete an asset record."""
        ...


class Subscription(Protocol):
    """Stream of messages for one tenant."""

    def __aiter__(self) -> AsyncIterator[BroadcastMessage]: ...

    async def __aenter__(self) -> "Subscription": ...

    async def __aexit__(self, *exc_info: Any) -> None: ...

    async def close(self) -> None: ...


class EventBroadcaster(Protocol):
    """Publish/subscribe channel keyed by tenant."""

    async def start(self) -> None: ...

    async def close(self) -> None: ...

    async def publish(
        self, tenant_id: str, event: str, payload: Dict[str, Any]
    ) -> None: ...

    async def subscribe(self, tenant_id: str) -> Subscription: ...


class DurationProvider(Protocol):
    """Supplies the total simulated processing time in milliseconds."""

    def __call__(self) -> int: ...


class Classifier(Protocol):
    """Decides the content-safety outcome of a processed asset."""

    def __call__(
        self, asset: Asset
    ) -> Union[Classification, Awaitable[Classification]]: ...
