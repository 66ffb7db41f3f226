"""Domain models."""

from vidshield.domain.models.actor import Actor
from vidshield.domain.models.asset import Asset

__all__ = ["Actor", "Asset"]
