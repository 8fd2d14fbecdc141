from __future__ import annotations

from fastapi import APIRouter, Query, Response, status

from bistro.api.context import current_trace_context
from bistro.application.dto.requests import TransactionRequest
from bistro.application.dto.responses import LedgerSummaryResponse, TransactionResponse
from bistro.application.use_cases.ledger import (
    CreateTransaction,
    DeleteTransaction,
    GetLedgerSummary,
    ListTransactions,
    PayTransaction,
)
from bistro.domain.common.ids import TransactionId
from bistro.infrastructure.config import pos_currency
from bistro.infrastructure.db.repositories.ledger_repo import SqlAlchemyLedgerRepository
from bistro.infrastructure.messaging.redis_publisher import RedisEventPublisher

router = APIRouter()


def _writer(use_case_cls):
    return use_case_cls(
        repository=SqlAlchemyLedgerRepository(),
        publisher=RedisEventPublisher(),
        currency=pos_currency(),
    )


@router.post(
    "/v1/ledger/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_transaction(request_dto: TransactionRequest) -> TransactionResponse:
    return _writer(CreateTransaction).execute(request_dto, trace_ctx=current_trace_context())


@router.get("/v1/ledger/transactions", response_model=list[TransactionResponse])
def list_transactions(
    transaction_type: str | None = Query(default=None, alias="type"),
    transaction_status: str | None = Query(default=None, alias="status"),
) -> list[TransactionResponse]:
    return ListTransactions(repository=SqlAlchemyLedgerRepository()).execute(
        type=transaction_type,
        status=transaction_status,
    )


@router.post("/v1/ledger/transactions/{transaction_id}/pay", response_model=TransactionResponse)
def pay_transaction(transaction_id: str) -> TransactionResponse:
    return _writer(PayTransaction).execute(
        TransactionId(transaction_id),
        trace_ctx=current_trace_context(),
    )


@router.delete(
    "/v1/ledger/transactions/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_transaction(transaction_id: str) -> Response:
    _writer(DeleteTransaction).execute(
        TransactionId(transaction_id),
        trace_ctx=current_trace_context(),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/v1/ledger/summary", response_model=LedgerSummaryResponse)
def ledger_summary() -> LedgerSummaryResponse:
    return GetLedgerSummary(
        repository=SqlAlchemyLedgerRepository(),
        currency=pos_currency(),
    ).execute()
