from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from fakes import CURRENCY, NOW, brl

from bistro.application.use_cases.dashboard import GetDashboard
from bistro.application.use_cases.revenue_report import GetRevenueReport, InvalidReportRangeError
from bistro.domain.common.ids import TableId
from bistro.domain.order.entities import OrderStatus
from bistro.domain.reporting.revenue import ReportRange, range_start

OFFSET_HOURS = -4.0


@pytest.fixture
def sales(order_repo, make_order) -> None:
    # NOW is 11:00 local; 570 minutes ago is 01:30 local today.
    order_repo.add(
        make_order("ord_today", 1, [("burger", 2500, 2), ("soda", 600, 1)], age_minutes=570)
    )
    order_repo.add(make_order("ord_later", None, [("soda", 600, 3)], age_minutes=30))
    order_repo.add(
        make_order("ord_cancelled", 1, [("burger", 2500, 5)], status=OrderStatus.CANCELLED)
    )
    # 22:00 local yesterday, already a new UTC day.
    order_repo.add(make_order("ord_yesterday", 2, [("burger", 2500, 1)], age_minutes=780))


def test_daily_start_is_local_midnight_in_utc() -> None:
    start = range_start(ReportRange.DAILY, NOW, OFFSET_HOURS)
    assert start.isoformat() == "2026-10-19T04:00:00+00:00"
    weekly = range_start(ReportRange.WEEKLY, NOW, OFFSET_HOURS)
    assert weekly.isoformat() == "2026-10-12T04:00:00+00:00"


def test_daily_report_sums_items_of_non_cancelled_orders(order_repo, sales) -> None:
    report = GetRevenueReport(order_repo, CURRENCY, OFFSET_HOURS, clock=lambda: NOW).execute(
        "daily"
    )
    assert report.revenue.amountCents == 5000 + 600 + 1800
    assert report.orders == 2
    assert report.itemsSold == 6
    buckets = {bucket.label: bucket for bucket in report.buckets}
    assert len(report.buckets) == 24
    assert buckets["01h"].revenue.amountCents == 5600
    assert buckets["10h"].orders == 1
    assert [product.productId for product in report.topProducts] == ["prd_soda", "prd_burger"]


def test_weekly_report_includes_yesterday(order_repo, sales) -> None:
    report = GetRevenueReport(order_repo, CURRENCY, OFFSET_HOURS, clock=lambda: NOW).execute(
        "WEEKLY"
    )
    assert report.orders == 3
    assert len(report.buckets) == 7


def test_invalid_range(order_repo) -> None:
    with pytest.raises(InvalidReportRangeError):
        GetRevenueReport(order_repo, CURRENCY, OFFSET_HOURS).execute("yearly")


def test_order_totals_are_ignored_in_favour_of_items(order_repo, make_order) -> None:
    order = make_order("ord_1", 1, [("burger", 2500, 1)])
    order_repo.add(replace(order, total=brl(1)))
    report = GetRevenueReport(order_repo, CURRENCY, OFFSET_HOURS, clock=lambda: NOW).execute(
        "monthly"
    )
    assert report.revenue.amountCents == 2500


def test_dashboard(order_repo, table_repo, sales) -> None:
    table_repo.save(table_repo.get(TableId(1)).occupy(brl(100)))
    use_case = GetDashboard(order_repo, table_repo, CURRENCY, OFFSET_HOURS, clock=lambda: NOW)
    payload = use_case.execute()
    assert payload.ordersToday == 3
    assert payload.activeTables == 1
    assert payload.totalTables == 2
    assert payload.revenueToday.amountCents == 7400
    assert payload.recentOrders[0].orderId == "ord_cancelled"
