from __future__ import annotations

import threading
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Callable

from bistro.application.dto.responses import KitchenOrderResponse, KitchenQueueResponse
from bistro.application.mappers.order_mapper import to_order_response
from bistro.application.metrics.pos_metrics import record_kitchen_queue_size
from bistro.application.ports.repositories import OrderRepository
from bistro.domain.kitchen.arrivals import NewArrivalTracker, is_urgent, minutes_waiting
from bistro.domain.order.entities import ACTIVE_KITCHEN_STATUSES, KITCHEN_FLOW, OrderStatus

DEFAULT_VIEW_ID = "default"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KitchenArrivalRegistry:
    """One new-arrival tracker per kitchen screen, least recently used evicted."""

    def __init__(self, max_views: int = 128) -> None:
        self._max_views = max_views
        self._trackers: OrderedDict[str, NewArrivalTracker] = OrderedDict()
        self._lock = threading.Lock()

    def tracker(self, view_id: str) -> NewArrivalTracker:
        with self._lock:
            tracker = self._trackers.get(view_id)
            if tracker is None:
                tracker = NewArrivalTracker()
                self._trackers[view_id] = tracker
                while len(self._trackers) > self._max_views:
                    self._trackers.popitem(last=False)
            else:
                self._trackers.move_to_end(view_id)
            return tracker


class KitchenQueue:
    def __init__(
        self,
        order_repository: OrderRepository,
        arrivals: KitchenArrivalRegistry,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._order_repository = order_repository
        self._arrivals = arrivals
        self._clock = clock

    def execute(self, view_id: str | None = None) -> KitchenQueueResponse:
        now = self._clock()
        orders = sorted(
            self._order_repository.list_active_kitchen(),
            key=lambda order: order.created_at,
        )
        orders = [order for order in orders if order.items]

        flagged = self._arrivals.tracker(view_id or DEFAULT_VIEW_ID).observe(
            (order.order_id for order in orders), now
        )

        counts = {
            status.value: 0 for status in KITCHEN_FLOW if status in ACTIVE_KITCHEN_STATUSES
        }
        for order in orders:
            counts[order.status.value] += 1
        record_kitchen_queue_size(counts)

        return KitchenQueueResponse(
            orders=[
                KitchenOrderResponse(
                    **to_order_response(order).model_dump(),
                    minutesWaiting=minutes_waiting(order.created_at, now),
                    isUrgent=order.status != OrderStatus.READY
                    and is_urgent(order.created_at, now),
                    isNew=order.order_id in flagged,
                )
                for order in orders
            ],
            counts=counts,
        )
