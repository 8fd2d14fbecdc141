from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import WebSocket

from bistro.application.realtime.refresh_trigger import RefreshTrigger

logger = logging.getLogger(__name__)


@dataclass
class _Subscription:
    trigger: RefreshTrigger
    topics: frozenset[str] | None


class ConnectionManager:
    """Routes change-feed topics to the refresh trigger of each open socket."""

    def __init__(self) -> None:
        self._subscriptions: dict[WebSocket, _Subscription] = {}

    @property
    def connection_count(self) -> int:
        return len(self._subscriptions)

    async def register(
        self,
        websocket: WebSocket,
        topics: frozenset[str] | None,
        view: str,
    ) -> RefreshTrigger:
        await websocket.accept()
        trigger = RefreshTrigger(name=f"ws:{view}")
        self._subscriptions[websocket] = _Subscription(trigger=trigger, topics=topics)
        logger.info(
            "ws_client_connected",
            extra={"view": view, "topics": sorted(topics) if topics else "*"},
        )
        return trigger

    def unregister(self, websocket: WebSocket) -> None:
        subscription = self._subscriptions.pop(websocket, None)
        if subscription is None:
            return
        subscription.trigger.close()
        logger.info("ws_client_disconnected", extra={"trigger": subscription.trigger.name})

    def notify(self, topic: str) -> None:
        for subscription in list(self._subscriptions.values()):
            if subscription.topics is None or topic in subscription.topics:
                subscription.trigger.poke(f"change:{topic}")
