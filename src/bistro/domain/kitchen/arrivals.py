from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from bistro.domain.common.ids import OrderId

NEW_ARRIVAL_WINDOW = timedelta(seconds=10)
URGENT_AFTER = timedelta(minutes=15)


class NewArrivalTracker:
    """Flags orders that appeared since the previous refresh of a view.

    The first observation only records a baseline. Every id that shows up
    afterwards stays flagged for ``window``.
    """

    def __init__(self, window: timedelta = NEW_ARRIVAL_WINDOW) -> None:
        self._window = window
        self._previous: set[OrderId] | None = None
        self._flagged_until: dict[OrderId, datetime] = {}

    def observe(self, active_ids: Iterable[OrderId], now: datetime) -> set[OrderId]:
        current = set(active_ids)
        if self._previous is not None:
            for order_id in current - self._previous:
                self._flagged_until[order_id] = now + self._window
        self._previous = current

        self._flagged_until = {
            order_id: until
            for order_id, until in self._flagged_until.items()
            if order_id in current and until > now
        }
        return set(self._flagged_until)


def minutes_waiting(created_at: datetime, now: datetime) -> int:
    return max(int((now - created_at).total_seconds() // 60), 0)


def is_urgent(created_at: datetime, now: datetime) -> bool:
    return now - created_at > URGENT_AFTER
