from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from bistro.application.dto.responses import DashboardResponse
from bistro.application.mappers.order_mapper import to_money_response, to_order_response
from bistro.application.ports.repositories import OrderRepository, TableRepository
from bistro.domain.reporting.revenue import ReportRange, range_start, revenue_since
from bistro.domain.table.entities import TableStatus

RECENT_ORDERS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GetDashboard:
    def __init__(
        self,
        order_repository: OrderRepository,
        table_repository: TableRepository,
        currency: str,
        offset_hours: float,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._order_repository = order_repository
        self._table_repository = table_repository
        self._currency = currency
        self._offset_hours = offset_hours
        self._clock = clock

    def execute(self) -> DashboardResponse:
        start = range_start(ReportRange.DAILY, self._clock(), self._offset_hours)
        today = self._order_repository.list_since(start)
        tables = self._table_repository.list()
        return DashboardResponse(
            ordersToday=len(today),
            activeTables=sum(1 for table in tables if table.status == TableStatus.OCCUPIED),
            totalTables=len(tables),
            revenueToday=to_money_response(revenue_since(today, start, self._currency)),
            recentOrders=[
                to_order_response(order)
                for order in self._order_repository.list_recent(RECENT_ORDERS)
            ],
        )
