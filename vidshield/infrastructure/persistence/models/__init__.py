"""Database models for the VidShield API."""

from vidshield.infrastructure.persistence.models.asset import AssetModel
from vidshield.infrastructure.persistence.models.base import Base, TimestampMixin

__all__ = ["AssetModel", "Base", "TimestampMixin"]
