"""Asset domain model - an uploaded video and its processing state."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

from vidshield.domain.enums import AssetStatus, Classification
from vidshield.domain.exceptions import (
    BusinessRuleViolation,
    ErrorContext,
    InvalidStateTransition,
    InvalidValueError,
    StateTransitionInfo,
)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class Asset:
    """Uploaded video tracked through the processing lifecycle.

    The transition methods mutate the instance and return the field
    changes a record store must persist for that transition.
    """

    id: UUID = field(default_factory=uuid4)
    tenant_id: str = ""
    title: str = ""
    filename: str = ""
    storage_path: str = ""
    content_type: str = ""
    size_bytes: int = 0
    duration_seconds: Optional[float] = None
    uploader_id: Optional[str] = None

    status: AssetStatus = AssetStatus.UPLOADED
    progress: int = 0
    classification: Classification = Classification.UNKNOWN

    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def create(
        cls,
        *,
        tenant_id: str,
        filename: str,
        storage_path: str,
        content_type: str,
        size_bytes: int,
        title: Optional[str] = None,
        uploader_id: Optional[str] = None,
        duration_seconds: Optional[float] = None,
    ) -> "Asset":
        """Create a freshly uploaded asset.

        Args:
            tenant_id: Organisation that owns the asset
            filename: Original client filename
            storage_path: Where the stored bytes live
            content_type: MIME type reported by the client
            size_bytes: Stored size
            title: Display title, defaults to the filename
            uploader_id: Actor that uploaded the file
            duration_seconds: Media duration when known

        Returns:
            Asset in the uploaded state
        """
        if not tenant_id:
            raise InvalidValueError(
                "Asset must belong to a tenant",
                context=ErrorContext(entity_type="Asset", field_name="tenant_id"),
            )
        if size_bytes < 0:
            raise InvalidValueError(
                "Asset size cannot be negative",
                context=ErrorContext(
                    entity_type="Asset", field_name="size_bytes", invalid_value=size_bytes
                ),
            )
        now = utc_now()
        return cls(
            tenant_id=tenant_id,
            title=title or filename,
            filename=filename,
            storage_path=storage_path,
            content_type=content_type,
            size_bytes=size_bytes,
            duration_seconds=duration_seconds,
            uploader_id=uploader_id,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_processing(self) -> bool:
        """Check if a pipeline is currently driving this asset."""
        return self.status == AssetStatus.PROCESSING

    @property
    def is_terminal(self) -> bool:
        """Check if the asset reached completed or failed."""
        return self.status.is_terminal

    def begin_processing(self) -> dict[str, Any]:
        """Move from uploaded to processing with progress reset."""
        self._require_status(AssetStatus.PROCESSING, AssetStatus.UPLOADED)
        self.status = AssetStatus.PROCESSING
        self.progress = 0
        return {"status": self.status, "progress": self.progress}

    def advance_progress(self, progress: int) -> dict[str, Any]:
        """Record a new progress value for the running episode."""
        self._require_status(AssetStatus.PROCESSING, AssetStatus.PROCESSING)
        if not 0 <= progress <= 100:
            raise InvalidValueError(
                "Progress must be between 0 and 100",
                context=ErrorContext(
                    entity_type="Asset",
                    entity_id=self.id,
                    field_name="progress",
                    invalid_value=progress,
                ),
            )
        if progress < self.progress:
            raise BusinessRuleViolation(
                f"Progress cannot decrease from {self.progress} to {progress}",
                context=ErrorContext(
                    entity_type="Asset",
                    entity_id=self.id,
                    field_name="progress",
                    invalid_value=progress,
                ),
            )
        self.progress = progress
        return {"progress": self.progress}

    def complete(self, classification: Classification) -> dict[str, Any]:
        """Finish processing with a definite classification."""
        self._require_status(AssetStatus.COMPLETED, AssetStatus.PROCESSING)
        if classification not in (Classification.SAFE, Classification.FLAGGED):
            raise InvalidValueError(
                "Completed assets need a safe or flagged classification",
                context=ErrorContext(
                    entity_type="Asset",
                    entity_id=self.id,
                    field_name="classification",
                    invalid_value=str(classification),
                ),
            )
        self.status = AssetStatus.COMPLETED
        self.progress = 100
        self.classification = classification
        return {
            "status": self.status,
            "progress": self.progress,
            "classification": self.classification,
        }

    def fail(self) -> dict[str, Any]:
        """Abandon processing; progress drops back to zero."""
        self._require_status(AssetStatus.FAILED, AssetStatus.PROCESSING)
        self.status = AssetStatus.FAILED
        self.progress = 0
        self.classification = Classification.UNKNOWN
        return {
            "status": self.status,
            "progress": self.progress,
            "classification": self.classification,
        }

    def _require_status(self, target: AssetStatus, required: AssetStatus) -> None:
        if self.status != required:
            raise InvalidStateTransition(
                StateTransitionInfo(
                    from_state=str(self.status),
                    to_state=str(target),
                    allowed_states=[str(required)],
                    entity_type="Asset",
                    entity_id=self.id,
                )
            )
