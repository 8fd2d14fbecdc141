from __future__ import annotations

from fastapi import APIRouter

from bistro.api.context import current_trace_context
from bistro.application.dto.requests import ResetRequest, SettingsRequest
from bistro.application.dto.responses import MaintenanceResponse, SettingsResponse
from bistro.application.use_cases.maintenance import ClearHistory, ResetOperationalData
from bistro.application.use_cases.settings import GetSettings, UpdateSettings
from bistro.infrastructure.config import pos_currency
from bistro.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from bistro.infrastructure.db.repositories.settings_repo import SqlAlchemySettingsRepository
from bistro.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from bistro.infrastructure.messaging.redis_publisher import RedisEventPublisher

router = APIRouter()


@router.get("/v1/settings", response_model=SettingsResponse)
def get_settings() -> SettingsResponse:
    return GetSettings(
        repository=SqlAlchemySettingsRepository(),
        default_currency=pos_currency(),
    ).execute()


@router.put("/v1/settings", response_model=SettingsResponse)
def update_settings(request_dto: SettingsRequest) -> SettingsResponse:
    use_case = UpdateSettings(
        repository=SqlAlchemySettingsRepository(),
        publisher=RedisEventPublisher(),
    )
    return use_case.execute(request_dto, trace_ctx=current_trace_context())


@router.post("/v1/admin/clear-history", response_model=MaintenanceResponse)
def clear_history() -> MaintenanceResponse:
    use_case = ClearHistory(
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
    )
    return use_case.execute(trace_ctx=current_trace_context())


@router.post("/v1/admin/reset", response_model=MaintenanceResponse)
def reset(request_dto: ResetRequest) -> MaintenanceResponse:
    use_case = ResetOperationalData(
        order_repository=SqlAlchemyOrderRepository(),
        table_repository=SqlAlchemyTableRepository(),
        publisher=RedisEventPublisher(),
    )
    return use_case.execute(request_dto.confirm, trace_ctx=current_trace_context())
