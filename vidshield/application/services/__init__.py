"""Application services."""

from vidshield.application.services.asset_service import AssetService

__all__ = ["AssetService"]
