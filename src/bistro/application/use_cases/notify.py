from __future__ import annotations

import logging

from bistro.application.ports.publisher import EventPublisher, change_feed_channel

logger = logging.getLogger(__name__)


def publish_change(publisher: EventPublisher, topic: str, message: str) -> None:
    """Push an event on the change feed; a feed outage never fails the caller."""
    try:
        publisher.publish(channel=change_feed_channel(topic), message=message)
    except Exception:
        logger.warning("change_feed_publish_failed", extra={"topic": topic}, exc_info=True)
