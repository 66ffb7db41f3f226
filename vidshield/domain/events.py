"""Processing events pushed to observers of a tenant.

Each event mirrors a persisted transition of an asset. Payload keys are
camelCase because they go out unchanged over the wire.
"""

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict
from uuid import UUID

from vidshield.domain.enums import AssetStatus, Classification


PROCESSING_START = "processing_start"
PROGRESS = "progress"
PROCESSED = "processed"
FAILED = "failed"


@dataclass(frozen=True)
class ProcessingEvent:
    """Base class for pipeline events."""

    name: ClassVar[str] = ""

    asset_id: UUID

    def payload(self) -> Dict[str, Any]:
        return {"assetId": str(self.asset_id)}


@dataclass(frozen=True)
class ProcessingStartedEvent(ProcessingEvent):
    """Asset entered processing with progress reset to zero."""

    name: ClassVar[str] = PROCESSING_START


@dataclass(frozen=True)
class ProgressEvent(ProcessingEvent):
    """A processing step finished and its progress was persisted."""

    name: ClassVar[str] = PROGRESS

    progress: int = 0

    def payload(self) -> Dict[str, Any]:
        return {"assetId": str(self.asset_id), "progress": self.progress}


@dataclass(frozen=True)
class ProcessedEvent(ProcessingEvent):
    """Asset completed with a definite classification."""

    name: ClassVar[str] = PROCESSED

    status: AssetStatus = AssetStatus.COMPLETED
    classification: Classification = Classification.UNKNOWN

    def payload(self) -> Dict[str, Any]:
        return {
            "assetId": str(self.asset_id),
            "status": str(self.status),
            "classification": str(self.classification),
        }


@dataclass(frozen=True)
class AssetFailedEvent(ProcessingEvent):
    """Asset was forced into the failed state."""

    name: ClassVar[str] = FAILED

    status: AssetStatus = AssetStatus.FAILED

    def payload(self) -> Dict[str, Any]:
        return {"assetId": str(self.asset_id), "status": str(self.status)}


@dataclass(frozen=True)
class BroadcastMessage:
    """A named event and its payload as delivered to subscribers."""

    event: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Frame sent to websocket observers."""
        return {"event": self.event, "data": self.payload}

    def to_json(self) -> str:
        return json.dumps({"event": self.event, "payload": self.payload})

    @classmethod
    def from_json(cls, raw: str | bytes) -> "BroadcastMessage":
        data = json.loads(raw)
        return cls(event=data["event"], payload=data.get("payload") or {})
