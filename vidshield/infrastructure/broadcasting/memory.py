"""In-process event broadcaster.

Each subscriber owns a bounded asyncio.Queue. Publishing never waits on a
slow subscriber: when its queue is full the new message is dropped for
that subscriber only.
"""

import asyncio
from collections import defaultdict
from typing import Any, AsyncIterator, Dict, Optional, Set

import structlog

from vidshield.domain.events import BroadcastMessage
from vidshield.domain.exceptions import BroadcastError

logger = structlog.get_logger(__name__)

_CLOSED = object()


class MemorySubscription:
    """Subscription to one tenant's events on an InMemoryBroadcaster."""

    def __init__(
        self, broadcaster: "InMemoryBroadcaster", tenant_id: str, max_queue_size: int
    ):
        self.tenant_id = tenant_id
        self._broadcaster = broadcaster
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, message: BroadcastMessage) -> bool:
        """Queue a message without waiting; False when it was dropped."""
        if self._closed:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(
                "subscriber_queue_full",
                tenant_id=self.tenant_id,
                event=message.event,
                dropped=self.dropped,
            )
            return False
        return True

    async def get(self, timeout: Optional[float] = None) -> Optional[BroadcastMessage]:
        """Wait for the next message; None once the subscription is closed."""
        if timeout is None:
            item = await self._queue.get()
        else:
            item = await asyncio.wait_for(self._queue.get(), timeout)
        if item is _CLOSED:
            # Keep the marker so further readers also stop
            self._queue.put_nowait(_CLOSED)
            return None
        return item

    def __aiter__(self) -> AsyncIterator[BroadcastMessage]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[BroadcastMessage]:
        while True:
            message = await self.get()
            if message is None:
                return
            yield message

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._broadcaster._remove(self)
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)

    async def __aenter__(self) -> "MemorySubscription":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class InMemoryBroadcaster:
    """Publish/subscribe channel keyed by tenant, within one process."""

    def __init__(self, max_queue_size: int = 256):
        self.max_queue_size = max_queue_size
        self._subscribers: Dict[str, Set[MemorySubscription]] = defaultdict(set)
        self._closed = False

    async def start(self) -> None:
        self._closed = False
        logger.info("broadcaster_started", backend="memory")

    async def close(self) -> None:
        """Stop accepting messages and end every open subscription."""
        self._closed = True
        subscriptions = [s for subs in self._subscribers.values() for s in subs]
        for subscription in subscriptions:
            await subscription.close()
        self._subscribers.clear()
        logger.info("broadcaster_closed", backend="memory", subscriptions=len(subscriptions))

    def subscriber_count(self, tenant_id: str) -> int:
        return len(self._subscribers.get(tenant_id, ()))

    async def publish(self, tenant_id: str, event: str, payload: Dict[str, Any]) -> None:
        if self._closed:
            raise BroadcastError(tenant_id, event, "broadcaster is closed")
        message = BroadcastMessage(event=event, payload=dict(payload))
        for subscription in list(self._subscribers.get(tenant_id, ())):
            subscription.deliver(message)

    async def subscribe(self, tenant_id: str) -> MemorySubscription:
        if self._closed:
            raise BroadcastError(tenant_id, "subscribe", "broadcaster is closed")
        subscription = MemorySubscription(self, tenant_id, self.max_queue_size)
        self._subscribers[tenant_id].add(subscription)
        logger.debug("subscriber_added", tenant_id=tenant_id)
        return subscription

    def _remove(self, subscription: MemorySubscription) -> None:
        subs = self._subscribers.get(subscription.tenant_id)
        if subs is None:
            return
        subs.discard(subscription)
        if not subs:
            self._subscribers.pop(subscription.tenant_id, None)
