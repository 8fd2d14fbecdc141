from __future__ import annotations

import logging

from prometheus_client import Counter

from bistro.application.ports.publisher import CHANGE_FEED_PREFIX, EventPublisher
from bistro.infrastructure.cache.redis_client import get_redis_client

logger = logging.getLogger(__name__)

CHANGE_FEED_PUBLISHED_TOTAL = Counter(
    "change_feed_published_total",
    "Change notifications published, by topic",
    ["topic"],
)


class RedisEventPublisher(EventPublisher):
    """Publishes change notifications on the ``events:<topic>`` channels."""

    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def publish(self, channel: str, message: str) -> None:
        receivers = get_redis_client(timeout_seconds=self._timeout_seconds).publish(
            channel, message
        )
        topic = channel.removeprefix(CHANGE_FEED_PREFIX)
        CHANGE_FEED_PUBLISHED_TOTAL.labels(topic=topic).inc()
        if not receivers:
            # No API process is subscribed; clients catch up on their interval refresh.
            logger.debug("change_feed_no_subscribers", extra={"topic": topic})
