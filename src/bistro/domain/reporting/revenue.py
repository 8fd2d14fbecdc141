from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from enum import Enum

from bistro.domain.common.ids import ProductId
from bistro.domain.common.money import Money
from bistro.domain.order.entities import Order, OrderStatus

WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class ReportRange(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


_DAYS_BACK = {
    ReportRange.DAILY: 0,
    ReportRange.WEEKLY: 7,
    ReportRange.MONTHLY: 30,
}


def local_zone(offset_hours: float) -> timezone:
    return timezone(timedelta(hours=offset_hours))


def range_start(report_range: ReportRange, now: datetime, offset_hours: float) -> datetime:
    """Local midnight of the first day in range, expressed in UTC.

    Stored timestamps are UTC; filtering on the UTC date would cut the
    evening of the local day once UTC rolls over.
    """
    zone = local_zone(offset_hours)
    local_day = now.astimezone(zone).date() - timedelta(days=_DAYS_BACK[report_range])
    return datetime.combine(local_day, time.min, tzinfo=zone).astimezone(timezone.utc)


@dataclass(frozen=True)
class RevenueBucket:
    label: str
    revenue: Money
    orders: int


@dataclass(frozen=True)
class ProductSales:
    product_id: ProductId
    name: str
    quantity: int
    revenue: Money


@dataclass(frozen=True)
class RevenueReport:
    report_range: ReportRange
    start: datetime
    revenue: Money
    orders: int
    items_sold: int
    buckets: list[RevenueBucket] = field(default_factory=list)
    top_products: list[ProductSales] = field(default_factory=list)


def _bucket_keys(report_range: ReportRange) -> list[int]:
    if report_range == ReportRange.DAILY:
        return list(range(24))
    if report_range == ReportRange.WEEKLY:
        return list(range(7))
    return list(range(1, 32))


def _bucket_key(report_range: ReportRange, local_created_at: datetime) -> int:
    if report_range == ReportRange.DAILY:
        return local_created_at.hour
    if report_range == ReportRange.WEEKLY:
        return local_created_at.weekday()
    return local_created_at.day


def _bucket_label(report_range: ReportRange, key: int) -> str:
    if report_range == ReportRange.DAILY:
        return f"{key:02d}h"
    if report_range == ReportRange.WEEKLY:
        return WEEKDAY_LABELS[key]
    return str(key)


def build_revenue_report(
    orders: list[Order],
    report_range: ReportRange,
    now: datetime,
    offset_hours: float,
    currency: str,
    top_limit: int = 10,
) -> RevenueReport:
    """Aggregate item-level revenue; the denormalized order total is ignored."""
    start = range_start(report_range, now, offset_hours)
    zone = local_zone(offset_hours)

    bucket_cents = {key: 0 for key in _bucket_keys(report_range)}
    bucket_orders = {key: 0 for key in _bucket_keys(report_range)}
    per_product: dict[ProductId, list] = {}
    revenue_cents = 0
    order_count = 0
    items_sold = 0

    for order in orders:
        if order.status == OrderStatus.CANCELLED or order.created_at < start:
            continue
        order_count += 1
        key = _bucket_key(report_range, order.created_at.astimezone(zone))
        bucket_orders[key] += 1
        for item in order.items:
            line_cents = item.unit_price.amount_cents * item.quantity
            revenue_cents += line_cents
            items_sold += item.quantity
            bucket_cents[key] += line_cents
            entry = per_product.setdefault(item.product_id, [item.name, 0, 0])
            entry[1] += item.quantity
            entry[2] += line_cents

    ranked = sorted(
        per_product.items(),
        key=lambda pair: (-pair[1][1], -pair[1][2], pair[1][0]),
    )
    return RevenueReport(
        report_range=report_range,
        start=start,
        revenue=Money(amount_cents=revenue_cents, currency=currency),
        orders=order_count,
        items_sold=items_sold,
        buckets=[
            RevenueBucket(
                label=_bucket_label(report_range, key),
                revenue=Money(amount_cents=bucket_cents[key], currency=currency),
                orders=bucket_orders[key],
            )
            for key in _bucket_keys(report_range)
        ],
        top_products=[
            ProductSales(
                product_id=product_id,
                name=name,
                quantity=quantity,
                revenue=Money(amount_cents=cents, currency=currency),
            )
            for product_id, (name, quantity, cents) in ranked[:top_limit]
        ],
    )


def revenue_since(orders: list[Order], start: datetime, currency: str) -> Money:
    cents = sum(
        item.unit_price.amount_cents * item.quantity
        for order in orders
        if order.status != OrderStatus.CANCELLED and order.created_at >= start
        for item in order.items
    )
    return Money(amount_cents=cents, currency=currency)
