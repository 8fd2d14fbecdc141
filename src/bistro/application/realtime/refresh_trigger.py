from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)


class RefreshTrigger:
    """Coalescing "refresh now" signal for one consumer.

    Producers call ``poke(source)`` from the event loop; the consumer iterates
    with ``async for source in trigger``. Signals that arrive while a refresh
    is pending collapse into that pending one, so a burst of change-feed
    events costs a single refresh.
    """

    def __init__(self, name: str = "refresh") -> None:
        self.name = name
        self._event = asyncio.Event()
        self._pending: str | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def poke(self, source: str) -> None:
        if self._closed:
            return
        if self._pending is None:
            self._pending = source
        self._event.set()

    def close(self) -> None:
        self._closed = True
        self._event.set()

    def __aiter__(self) -> RefreshTrigger:
        return self

    async def __anext__(self) -> str:
        while True:
            if self._pending is not None:
                source = self._pending
                self._pending = None
                self._event.clear()
                return source
            if self._closed:
                raise StopAsyncIteration
            await self._event.wait()
            self._event.clear()


async def run_interval(trigger: RefreshTrigger, interval_seconds: float) -> None:
    """Pokes ``trigger`` every ``interval_seconds`` until cancelled or closed."""
    while not trigger.closed:
        await asyncio.sleep(interval_seconds)
        trigger.poke("interval")
    logger.debug("refresh_interval_stopped", extra={"trigger": trigger.name})
