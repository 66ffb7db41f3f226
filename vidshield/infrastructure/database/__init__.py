"""Database infrastructure."""

from vidshield.infrastructure.database.connection import Database

__all__ = ["Database"]
