"""Asset repository implementation."""

from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from vidshield.domain.enums import AssetStatus
from vidshield.domain.exceptions import ConcurrentUpdateError, StorePersistError
from vidshield.domain.models.asset import Asset, utc_now
from vidshield.infrastructure.persistence.models.asset import AssetModel

logger = structlog.get_logger(__name__)

MUTABLE_FIELDS = frozenset(
    {"status", "progress", "classification", "title", "duration_seconds"}
)


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class SqlAlchemyAssetStore:
    """SQLAlchemy implementation of the asset record store.

    Every call opens its own session and transaction, so one store can
    be shared by concurrently running pipelines.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """Initialize with a session factory."""
        self._session_factory = session_factory

    async def add(self, asset: Asset) -> Asset:
        """Add asset to repository."""
        try:
            async with self._session_factory() as session, session.begin():
                model = AssetModel.from_entity(asset)
                session.add(model)
                await session.flush()
                return model.to_entity()
        except SQLAlchemyError as e:
            raise StorePersistError("add", asset.id, str(e)) from e

    async def get(self, asset_id: UUID) -> Optional[Asset]:
        """Get asset by ID."""
        try:
            async with self._session_factory() as session:
                model = await session.get(AssetModel, asset_id)
                return model.to_entity() if model else None
        except SQLAlchemyError as e:
            raise StorePersistError("get", asset_id, str(e)) from e

    async def update(
        self,
        asset_id: UUID,
        changes: Dict[str, Any],
        *,
        expected_status: Optional[AssetStatus] = None,
    ) -> Optional[Asset]:
        """Apply a partial update as a single conditional UPDATE.

        Args:
            asset_id: Asset to update
            changes: Field values to write, restricted to mutable fields
            expected_status: When given, the update only applies if the
                stored status still equals it

        Returns:
            The persisted asset, or None if the record does not exist

        Raises:
            ConcurrentUpdateError: Stored status differs from expected_status
            StorePersistError: The database rejected the operation
        """
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

        values = {name: _column_value(value) for name, value in changes.items()}
        values["updated_at"] = utc_now()
        stmt = update(AssetModel).where(AssetModel.id == asset_id)
        if expected_status is not None:
            stmt = stmt.where(AssetModel.status == expected_status.value)
        stmt = stmt.values(**values).execution_options(synchronize_session=False)

        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(stmt)
                model = await session.get(AssetModel, asset_id, populate_existing=True)
                if model is None:
                    return None
                if result.rowcount == 0:
                    raise ConcurrentUpdateError(
                        asset_id, expected=str(expected_status), actual=model.status
                    )
                return model.to_entity()
        except SQLAlchemyError as e:
            raise StorePersistError("update", asset_id, str(e)) from e

    async def list_by_tenant(
        self,
        tenant_id: str,
        *,
        status: Optional[AssetStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Asset]:
        """List a tenant's assets, newest first."""
        stmt = select(AssetModel).where(AssetModel.tenant_id == tenant_id)
        if status is not None:
            stmt = stmt.where(AssetModel.status == status.value)
        stmt = (
            stmt.order_by(AssetModel.created_at.desc(), AssetModel.id)
            .limit(limit)
            .offset(offset)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [model.to_entity() for model in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StorePersistError("list", None, str(e)) from e

    async def count_by_tenant(
        self, tenant_id: str, *, status: Optional[AssetStatus] = None
    ) -> int:
        """Count a tenant's assets."""
        stmt = (
            select(func.count())
            .select_from(AssetModel)
            .where(AssetModel.tenant_id == tenant_id)
        )
        if status is not None:
            stmt = stmt.where(AssetModel.status == status.value)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.scalar_one()
        except SQLAlchemyError as e:
            raise StorePersistError("count", None, str(e)) from e

    async def delete(self, asset_id: UUID) -> bool:
        """Delete asset by ID."""
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    delete(AssetModel).where(AssetModel.id == asset_id)
                )
                deleted = result.rowcount > 0
        except SQLAlchemyError as e:
            raise StorePersistError("delete", asset_id, str(e)) from e

        if deleted:
            logger.info("asset_deleted", asset_id=str(asset_id))
        return deleted
