"""API request and response schemas."""

from vidshield.api.schemas.assets import AssetListResponse, AssetResponse

__all__ = ["AssetListResponse", "AssetResponse"]
