from __future__ import annotations

from typing import Protocol

CHANGE_FEED_PREFIX = "events:"


def change_feed_channel(topic: str) -> str:
    return f"{CHANGE_FEED_PREFIX}{topic}"


class EventPublisher(Protocol):
    def publish(self, channel: str, message: str) -> None: ...
