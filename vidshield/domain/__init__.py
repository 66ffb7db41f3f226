"""Domain layer for the VidShield video service.

This layer contains the asset state machine, the processing event
contract and the ports the processing core depends on, independent of
infrastructure concerns like databases or web frameworks.
"""

from vidshield.domain.enums import AssetStatus, Classification, UserRole
from vidshield.domain.events import (
    AssetFailedEvent,
    BroadcastMessage,
    ProcessedEvent,
    ProcessingStartedEvent,
    ProgressEvent,
)
from vidshield.domain.models import Actor, Asset

__all__ = [
    "Actor",
    "Asset",
    "AssetStatus",
    "Classification",
    "UserRole",
    "AssetFailedEvent",
    "BroadcastMessage",
    "ProcessedEvent",
    "ProcessingStartedEvent",
    "ProgressEvent",
]
