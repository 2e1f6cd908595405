"""Outbox worker: publishes committed domain events to the Redis fan-out channel.

Every API process subscribes to the channel and pushes ``chat.message_created``
events to the appointment rooms it holds.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import redis.asyncio as aioredis

from counsel_service.application.ports.bus import EventPublisher
from counsel_service.application.uow import UoWFactory
from counsel_service.config import settings
from counsel_service.infrastructure.bus.redis_pubsub import RedisPubSubPublisher
from counsel_service.infrastructure.db.uow import uow_scope

logger = logging.getLogger(__name__)

RETRY_BASE_SECONDS = 2
RETRY_CAP_SECONDS = 120


def next_retry_at(attempts: int, now: datetime | None = None) -> datetime:
    """Exponential backoff for a record that failed ``attempts`` times so far."""
    delay = min(RETRY_BASE_SECONDS * (2 ** attempts), RETRY_CAP_SECONDS)
    return (now or datetime.now(timezone.utc)) + timedelta(seconds=delay)


async def publish_batch(
    publisher: EventPublisher,
    uow_factory: UoWFactory = uow_scope,
    *,
    channel: str | None = None,
    batch_size: int | None = None,
    max_attempts: int | None = None,
) -> int:
    """Publish one batch of pending records. Returns how many were sent."""
    channel = channel or settings.REDIS_PUBSUB_CHANNEL
    batch_size = batch_size or settings.OUTBOX_BATCH_SIZE
    max_attempts = max_attempts or settings.OUTBOX_MAX_ATTEMPTS

    async with uow_factory() as uow:
        records = await uow.outbox.fetch_pending(batch_size)
        if not records:
            return 0

        published: list[int] = []
        exhausted: list[int] = []
        for record in records:
            if record.attempts >= max_attempts:
                logger.warning(
                    "Giving up on outbox record %d (%s) after %d attempts",
                    record.id, record.event_type, record.attempts,
                )
                exhausted.append(record.id)
                continue
            try:
                await publisher.publish(channel, {"event_type": record.event_type, **record.payload})
            except Exception:
                logger.exception("Publishing outbox record %d failed", record.id)
                await uow.outbox.mark_failed(record.id, next_retry_at(record.attempts))
            else:
                published.append(record.id)

        await uow.outbox.mark_sent(published)
        await uow.outbox.mark_dead(exhausted)
        await uow.commit()

    if published:
        logger.info("Published %d/%d outbox records", len(published), len(records))
    return len(published)


async def run_outbox_worker() -> None:
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    publisher = RedisPubSubPublisher(redis)
    logger.info(
        "Outbox worker polling every %.1fs (batch=%d, channel=%s)",
        settings.OUTBOX_POLL_INTERVAL, settings.OUTBOX_BATCH_SIZE, settings.REDIS_PUBSUB_CHANNEL,
    )
    try:
        while True:
            try:
                await publish_batch(publisher)
            except Exception:
                logger.exception("Outbox poll failed")
            await asyncio.sleep(settings.OUTBOX_POLL_INTERVAL)
    finally:
        await redis.aclose()


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncio.run(run_outbox_worker())


if __name__ == "__main__":
    main()
