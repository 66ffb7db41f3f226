"""Event broadcaster implementations."""

from vidshield.domain.enums import BroadcastBackend
from vidshield.infrastructure.broadcasting.memory import (
    InMemoryBroadcaster,
    MemorySubscription,
)
from vidshield.infrastructure.broadcasting.redis import (
    RedisBroadcaster,
    RedisSubscription,
)
from vidshield.infrastructure.config import Settings


def create_broadcaster(settings: Settings):
    """Build the broadcaster selected by ``settings.broadcast.backend``."""
    if settings.broadcast.backend == BroadcastBackend.REDIS:
        return RedisBroadcaster(
            settings.redis.url, channel_prefix=settings.broadcast.channel_prefix
        )
    return InMemoryBroadcaster(max_queue_size=settings.broadcast.subscriber_queue_size)


__all__ = [
    "InMemoryBroadcaster",
    "MemorySubscription",
    "RedisBroadcaster",
    "RedisSubscription",
    "create_broadcaster",
]
