"""Repository implementations backed by SQLAlchemy."""

from vidshield.infrastructure.persistence.repositories.asset_repository import (
    SqlAlchemyAssetStore,
)

__all__ = ["SqlAlchemyAssetStore"]
