"""Pydantic response models for asset endpoints."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from vidshield.domain.enums import AssetStatus, Classification
from vidshield.domain.models.asset import Asset


class AssetResponse(BaseModel):
    """Asset as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: str
    title: str
    filename: str
    content_type: str
    size_bytes: int
    duration_seconds: Optional[float] = None
    uploader_id: Optional[str] = None
    status: AssetStatus
    progress: int = Field(ge=0, le=100)
    classification: Classification
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, asset: Asset) -> "AssetResponse":
        return cls.model_validate(asset)


class AssetListResponse(BaseModel):
    """One page of a tenant's assets."""

    items: List[AssetResponse]
    total: int
    limit: int
    offset: int
