"""File storage adapters."""

from vidshield.infrastructure.storage.local_storage import LocalFileStorage, StoredFile

__all__ = ["LocalFileStorage", "StoredFile"]
