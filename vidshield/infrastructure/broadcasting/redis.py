"""Redis pub/sub event broadcaster.

Lets several API processes share one event stream: every tenant maps to
the channel ``<prefix>:<tenant_id>``.
"""

from typing import Any, AsyncIterator, Dict, Optional

import redis.asyncio as redis_async
import structlog
from redis.exceptions import RedisError

from vidshield.domain.events import BroadcastMessage
from vidshield.domain.exceptions import BroadcastError

logger = structlog.get_logger(__name__)


class RedisSubscription:
    """Subscription backed by a Redis PubSub connection."""

    def __init__(self, pubsub: Any, tenant_id: str, channel: str, poll_timeout: float = 1.0):
        self.tenant_id = tenant_id
        self.channel = channel
        self._pubsub = pubsub
        self._poll_timeout = poll_timeout
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[BroadcastMessage]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[BroadcastMessage]:
        while not self._closed:
            try:
                raw = await self._pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=self._poll_timeout
                )
            except RedisError as e:
                if self._closed:
                    return
                raise BroadcastError(self.tenant_id, "subscribe", str(e)) from e
            if raw is None or raw.get("type") != "message":
                continue
            try:
                yield BroadcastMessage.from_json(raw["data"])
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(
                    "malformed_broadcast_message", channel=self.channel, error=str(e)
                )

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
        except RedisError as e:
            logger.warning("redis_unsubscribe_failed", channel=self.channel, error=str(e))

    async def __aenter__(self) -> "RedisSubscription":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class RedisBroadcaster:
    """Publish/subscribe channel keyed by tenant, shared through Redis."""

    def __init__(
        self,
        url: Optional[str] = None,
        *,
        client: Optional[redis_async.Redis] = None,
        channel_prefix: str = "vidshield:events",
        poll_timeout: float = 1.0,
    ):
        if client is None and url is None:
            raise ValueError("RedisBroadcaster needs a url or a client")
        self._url = url
        self._client = client
        self._owns_client = client is None
        self.channel_prefix = channel_prefix
        self._poll_timeout = poll_timeout

    def channel_for(self, tenant_id: str) -> str:
        return f"{self.channel_prefix}:{tenant_id}"

    @property
    def client(self) -> redis_async.Redis:
        if self._client is None:
            raise BroadcastError("*", "connect", "broadcaster has not been started")
        return self._client

    async def start(self) -> None:
        """Open the connection and verify Redis is reachable."""
        if self._client is None:
            self._client = redis_async.from_url(self._url, decode_responses=True)
        try:
            await self._client.ping()
        except RedisError as e:
            raise BroadcastError("*", "connect", str(e)) from e
        logger.info("broadcaster_started", backend="redis", prefix=self.channel_prefix)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        logger.info("broadcaster_closed", backend="redis")

    async def publish(self, tenant_id: str, event: str, payload: Dict[str, Any]) -> None:
        message = BroadcastMessage(event=event, payload=dict(payload))
        try:
            await self.client.publish(self.channel_for(tenant_id), message.to_json())
        except RedisError as e:
            raise BroadcastError(tenant_id, event, str(e)) from e

    async def subscribe(self, tenant_id: str) -> RedisSubscription:
        channel = self.channel_for(tenant_id)
        pubsub = self.client.pubsub()
        try:
            await pubsub.subscribe(channel)
        except RedisError as e:
            raise BroadcastError(tenant_id, "subscribe", str(e)) from e
        logger.debug("subscriber_added", tenant_id=tenant_id, channel=channel)
        return RedisSubscription(pubsub, tenant_id, channel, self._poll_timeout)
