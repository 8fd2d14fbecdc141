from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from bistro.application.dto.responses import (
    ProductSalesResponse,
    RevenueBucketResponse,
    RevenueReportResponse,
)
from bistro.application.mappers.order_mapper import to_money_response
from bistro.application.ports.repositories import OrderRepository
from bistro.domain.reporting.revenue import ReportRange, build_revenue_report, range_start


class InvalidReportRangeError(Exception):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GetRevenueReport:
    def __init__(
        self,
        order_repository: OrderRepository,
        currency: str,
        offset_hours: float,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._order_repository = order_repository
        self._currency = currency
        self._offset_hours = offset_hours
        self._clock = clock

    def execute(self, report_range: str) -> RevenueReportResponse:
        try:
            parsed = ReportRange(report_range.lower())
        except ValueError:
            raise InvalidReportRangeError(
                f"invalid range: {report_range} (expected daily, weekly or monthly)"
            ) from None

        now = self._clock()
        orders = self._order_repository.list_since(range_start(parsed, now, self._offset_hours))
        report = build_revenue_report(
            orders,
            parsed,
            now=now,
            offset_hours=self._offset_hours,
            currency=self._currency,
        )
        return RevenueReportResponse(
            range=report.report_range.value,
            start=report.start,
            revenue=to_money_response(report.revenue),
            orders=report.orders,
            itemsSold=report.items_sold,
            buckets=[
                RevenueBucketResponse(
                    label=bucket.label,
                    revenue=to_money_response(bucket.revenue),
                    orders=bucket.orders,
                )
                for bucket in report.buckets
            ],
            topProducts=[
                ProductSalesResponse(
                    productId=str(sales.product_id),
                    name=sales.name,
                    quantity=sales.quantity,
                    revenue=to_money_response(sales.revenue),
                )
                for sales in report.top_products
            ],
        )
