"""Cross-process fan-out over a Redis Pub/Sub channel.

The outbox worker publishes; every API process runs one subscriber and hands
each event to a callback (the local delivery coordinator).
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import redis.asyncio as aioredis

from counsel_service.infrastructure.bus.serializer import deserialize_event, serialize_event

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, dict[str, Any]], Awaitable[None]]


class RedisPubSubPublisher:
    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def publish(self, channel: str, payload: dict[str, Any]) -> None:
        fields = dict(payload)
        event_type = fields.pop("event_type", "unknown")
        receivers = await self._redis.publish(channel, serialize_event(event_type, fields))
        logger.debug("Published %s to %s (%d subscribers)", event_type, channel, receivers)


class RedisPubSubSubscriber:
    """Long-lived listener; resubscribes after connection loss."""

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        handler: EventHandler,
        *,
        reconnect_delay: float = 5.0,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._handler = handler
        self._reconnect_delay = reconnect_delay
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name=f"pubsub:{self._channel}")
        logger.info("Subscribed to %s", self._channel)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Unsubscribed from %s", self._channel)

    async def dispatch(self, raw: str | bytes) -> None:
        """Decode one channel message and run the handler; failures are logged, not raised."""
        try:
            event_type, data = deserialize_event(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning("Dropping undecodable message on %s: %.200r", self._channel, raw)
            return
        try:
            await self._handler(event_type, data)
        except Exception:
            logger.exception("Handler failed for %s event", event_type)

    async def _run(self) -> None:
        while True:
            try:
                async with self._redis.pubsub(ignore_subscribe_messages=True) as pubsub:
                    await pubsub.subscribe(self._channel)
                    async for message in pubsub.listen():
                        if message["type"] == "message":
                            await self.dispatch(message["data"])
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Lost %s subscription, retrying in %.0fs", self._channel, self._reconnect_delay)
                await asyncio.sleep(self._reconnect_delay)
