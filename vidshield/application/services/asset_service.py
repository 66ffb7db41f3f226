"""Asset service - upload handling and tenant-scoped asset access.

This is a thin application service that coordinates file storage, the
asset record store and the pipeline supervisor.
"""

from dataclasses import dataclass
from typing import AsyncIterator, List, Optional, Tuple
from uuid import UUID

import structlog

from vidshield.application.processing.supervisor import PipelineSupervisor
from vidshield.domain.enums import AssetStatus, UserRole
from vidshield.domain.exceptions import AssetNotFoundError
from vidshield.domain.models.actor import Actor
from vidshield.domain.models.asset import Asset
from vidshield.domain.protocols import AssetStore
from vidshield.infrastructure.storage.local_storage import LocalFileStorage

logger = structlog.get_logger(__name__)


@dataclass
class AssetService:
    """Coordinates uploads, lookups and deletions of assets."""

    store: AssetStore
    storage: LocalFileStorage
    supervisor: PipelineSupervisor

    async def upload(
        self,
        actor: Actor,
        *,
        filename: str,
        content_type: Optional[str],
        chunks: AsyncIterator[bytes],
        title: Optional[str] = None,
    ) -> Asset:
        """Store an uploaded video and start processing it.

        Args:
            actor: Uploading actor, must be an admin or editor
            filename: Original client filename
            content_type: MIME type reported by the client
            chunks: File content
            title: Optional display title

        Returns:
            The asset as persisted at uploaded
        """
        actor.require_role("upload_asset", UserRole.ADMIN, UserRole.EDITOR)
        stored = await self.storage.save(filename, content_type, chunks)

        asset = Asset.create(
            tenant_id=actor.tenant_id,
            title=(title or "").strip() or None,
            filename=filename,
            storage_path=stored.path,
            content_type=content_type or "",
            size_bytes=stored.size_bytes,
            uploader_id=actor.user_id,
        )
        try:
            asset = await self.store.add(asset)
        except Exception:
            await self.storage.delete(stored.path)
            raise

        logger.info(
            "asset_uploaded",
            asset_id=str(asset.id),
            tenant_id=asset.tenant_id,
            size_bytes=asset.size_bytes,
        )
        self.supervisor.start(asset.id)
        return asset

    async def list_assets(
        self,
        actor: Actor,
        *,
        status: Optional[AssetStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Asset], int]:
        """List the actor's tenant assets with the unpaginated total."""
        items = await self.store.list_by_tenant(
            actor.tenant_id, status=status, limit=limit, offset=offset
        )
        total = await self.store.count_by_tenant(actor.tenant_id, status=status)
        return items, total

    async def get_asset(self, actor: Actor, asset_id: UUID) -> Asset:
        """Get an asset of the actor's tenant.

        Assets of other tenants are reported as missing.
        """
        asset = await self.store.get(asset_id)
        if asset is None or asset.tenant_id != actor.tenant_id:
            raise AssetNotFoundError(asset_id)
        return asset

    async def delete_asset(self, actor: Actor, asset_id: UUID) -> None:
        """Delete an asset, stopping its pipeline first."""
        actor.require_role("delete_asset", UserRole.ADMIN)
        asset = await self.get_asset(actor, asset_id)

        await self.supervisor.cancel(asset.id)
        if not await self.store.delete(asset.id):
            raise AssetNotFoundError(asset_id)
        await self.storage.delete(asset.storage_path)
        logger.info("asset_removed", asset_id=str(asset.id), tenant_id=asset.tenant_id)
