from __future__ import annotations

from fastapi import APIRouter, status

from bistro.api.context import current_trace_context
from bistro.application.dto.requests import CreateTableRequest
from bistro.application.dto.responses import (
    ReconciliationResponse,
    TableListResponse,
    TableQrCodeResponse,
    TableResponse,
)
from bistro.application.use_cases.reconcile_tables import ReconcileTables
from bistro.application.use_cases.tables import CreateTable, GetTable, ListTableQrCodes, ListTables
from bistro.domain.common.ids import TableId
from bistro.infrastructure.config import pos_currency, public_base_url
from bistro.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from bistro.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository
from bistro.infrastructure.messaging.redis_publisher import RedisEventPublisher

router = APIRouter()


def _list_tables_use_case() -> ListTables:
    return ListTables(
        table_repository=SqlAlchemyTableRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
    )


def _reconcile_tables_use_case() -> ReconcileTables:
    return ReconcileTables(
        table_repository=SqlAlchemyTableRepository(),
        order_repository=SqlAlchemyOrderRepository(),
        publisher=RedisEventPublisher(),
    )


@router.get("/v1/tables", response_model=TableListResponse)
def list_tables() -> TableListResponse:
    return _list_tables_use_case().execute(trace_ctx=current_trace_context())


@router.post("/v1/tables", response_model=TableResponse, status_code=status.HTTP_201_CREATED)
def create_table(request_dto: CreateTableRequest) -> TableResponse:
    use_case = CreateTable(
        table_repository=SqlAlchemyTableRepository(),
        publisher=RedisEventPublisher(),
        currency=pos_currency(),
    )
    return use_case.execute(
        table_id=TableId(request_dto.table_id),
        name=request_dto.name,
        trace_ctx=current_trace_context(),
    )


@router.post("/v1/tables/reconcile", response_model=ReconciliationResponse)
def reconcile_tables() -> ReconciliationResponse:
    return _reconcile_tables_use_case().execute(trace_ctx=current_trace_context())


@router.get("/v1/tables/qrcodes", response_model=list[TableQrCodeResponse])
def table_qrcodes() -> list[TableQrCodeResponse]:
    use_case = ListTableQrCodes(
        table_repository=SqlAlchemyTableRepository(),
        public_base_url=public_base_url(),
    )
    return use_case.execute()


@router.get("/v1/tables/{table_id}", response_model=TableResponse)
def get_table(table_id: int) -> TableResponse:
    return GetTable(table_repository=SqlAlchemyTableRepository()).execute(TableId(table_id))
