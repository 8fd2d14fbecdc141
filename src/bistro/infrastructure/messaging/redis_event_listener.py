from __future__ import annotations

import asyncio
import logging
from typing import Any

from redis import asyncio as redis_asyncio

from bistro.application.ports.publisher import CHANGE_FEED_PREFIX
from bistro.infrastructure.cache.redis_client import redis_url as configured_redis_url

logger = logging.getLogger(__name__)

CHANGE_FEED_PATTERN = f"{CHANGE_FEED_PREFIX}*"
INITIAL_BACKOFF_SECONDS = 1.0
MAX_BACKOFF_SECONDS = 5.0


def _decode_value(value: bytes | str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


def topic_from_channel(channel: str) -> str | None:
    if not channel.startswith(CHANGE_FEED_PREFIX):
        return None
    topic = channel[len(CHANGE_FEED_PREFIX):]
    return topic or None


def dispatch_change(app_state: Any, topic: str) -> None:
    """Turns one change-feed message into refresh signals."""
    app_state.ws_manager.notify(topic)
    worker = getattr(app_state, "reconciliation_worker", None)
    if worker is not None:
        worker.notify(topic)


def _topic_of(message: dict[str, Any]) -> str | None:
    if message.get("type") != "pmessage":
        return None
    channel = _decode_value(message.get("channel"))
    topic = topic_from_channel(channel) if channel else None
    if topic is None:
        logger.warning("change_feed_invalid_channel", extra={"channel": channel})
    return topic


async def _consume(redis_url: str, app_state: Any) -> None:
    client = redis_asyncio.from_url(redis_url)
    pubsub = client.pubsub()
    try:
        await pubsub.psubscribe(CHANGE_FEED_PATTERN)
        logger.info("change_feed_subscribed", extra={"pattern": CHANGE_FEED_PATTERN})
        async for message in pubsub.listen():
            topic = _topic_of(message)
            if topic is not None:
                dispatch_change(app_state, topic)
    finally:
        await pubsub.aclose()
        await client.aclose()


async def start_change_feed_listener(app_state: Any) -> None:
    """Subscribes to every change topic and keeps resubscribing on failure.

    Without ``REDIS_URL`` clients still refresh on their own interval, so the
    listener just logs and returns.
    """
    redis_url = configured_redis_url()
    if not redis_url:
        logger.warning("change_feed_listener_not_started", extra={"reason": "REDIS_URL missing"})
        return

    backoff_seconds = INITIAL_BACKOFF_SECONDS
    while True:
        try:
            await _consume(redis_url, app_state)
            logger.warning("change_feed_subscription_ended")
            backoff_seconds = INITIAL_BACKOFF_SECONDS
            await asyncio.sleep(backoff_seconds)
        except asyncio.CancelledError:
            logger.info("change_feed_listener_cancelled")
            raise
        except Exception:
            logger.exception(
                "change_feed_listener_error",
                extra={"backoff_seconds": backoff_seconds},
            )
            await asyncio.sleep(backoff_seconds)
            backoff_seconds = min(backoff_seconds * 2, MAX_BACKOFF_SECONDS)
