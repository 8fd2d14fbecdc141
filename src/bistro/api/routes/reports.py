from __future__ import annotations

from fastapi import APIRouter, Query

from bistro.application.dto.responses import DashboardResponse, RevenueReportResponse
from bistro.application.use_cases.dashboard import GetDashboard
from bistro.application.use_cases.revenue_report import GetRevenueReport
from bistro.infrastructure.config import pos_currency, utc_offset_hours
from bistro.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from bistro.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository

router = APIRouter()


@router.get("/v1/reports/revenue", response_model=RevenueReportResponse)
def revenue_report(
    report_range: str = Query(default="daily", alias="range"),
) -> RevenueReportResponse:
    use_case = GetRevenueReport(
        order_repository=SqlAlchemyOrderRepository(),
        currency=pos_currency(),
        offset_hours=utc_offset_hours(),
    )
    return use_case.execute(report_range)


@router.get("/v1/dashboard", response_model=DashboardResponse)
def dashboard() -> DashboardResponse:
    use_case = GetDashboard(
        order_repository=SqlAlchemyOrderRepository(),
        table_repository=SqlAlchemyTableRepository(),
        currency=pos_currency(),
        offset_hours=utc_offset_hours(),
    )
    return use_case.execute()
