"""Asset model for uploaded videos.

This module defines the Asset model which stores the metadata and
processing state of uploaded videos.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Float, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from vidshield.domain.enums import AssetStatus, Classification
from vidshield.domain.models.asset import Asset
from vidshield.infrastructure.persistence.models.base import Base, TimestampMixin


def _as_utc(value: datetime) -> datetime:
    # sqlite hands timestamps back without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AssetModel(Base, TimestampMixin):
    """Asset model for tracking video processing.

    Attributes:
        id: Unique identifier for the asset
        tenant_id: Organisation that owns the asset
        title: Display title
        filename: Original client filename
        storage_path: Location of the stored bytes
        content_type: MIME type of the upload
        size_bytes: Stored size
        duration_seconds: Media duration when known
        uploader_id: User that uploaded the file
        status: Current processing status
        progress: Processing progress percentage
        classification: Content-safety outcome
        created_at: Timestamp when the asset was created
        updated_at: Timestamp when the asset was last updated
    """

    __tablename__ = "assets"
    __table_args__ = (Index("ix_assets_tenant_created", "tenant_id", "created_at"),)

    id: Mapped[UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid4, comment="Unique identifier for the asset"
    )

    tenant_id: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True, comment="Owning organisation"
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    filename: Mapped[str] = mapped_column(String(500), nullable=False)

    storage_path: Mapped[str] = mapped_column(Text, nullable=False)

    content_type: Mapped[str] = mapped_column(String(255), nullable=False)

    size_bytes: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    duration_seconds: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    uploader_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=AssetStatus.UPLOADED.value,
        index=True,
        comment="Current processing status",
    )

    progress: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Processing progress percentage"
    )

    classification: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=Classification.UNKNOWN.value,
        comment="Content-safety outcome",
    )

    def to_entity(self) -> Asset:
        """Convert to the domain model."""
        return Asset(
            id=self.id,
            tenant_id=self.tenant_id,
            title=self.title,
            filename=self.filename,
            storage_path=self.storage_path,
            content_type=self.content_type,
            size_bytes=self.size_bytes,
            duration_seconds=self.duration_seconds,
            uploader_id=self.uploader_id,
            status=AssetStatus(self.status),
            progress=self.progress,
            classification=Classification(self.classification),
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
        )

    @classmethod
    def from_entity(cls, asset: Asset) -> "AssetModel":
        """Build a row from the domain model."""
        return cls(
            id=asset.id,
            tenant_id=asset.tenant_id,
            title=asset.title,
            filename=asset.filename,
            storage_path=asset.storage_path,
            content_type=asset.content_type,
            size_bytes=asset.size_bytes,
            duration_seconds=asset.duration_seconds,
            uploader_id=asset.uploader_id,
            status=asset.status.value,
            progress=asset.progress,
            classification=asset.classification.value,
            created_at=asset.created_at,
            updated_at=asset.updated_at,
        )

    def __repr__(self) -> str:
        """String representation of the asset."""
        return f"<AssetModel(id={self.id}, status='{self.status}', progress={self.progress})>"
