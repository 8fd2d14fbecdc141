from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bistro.api.middleware.request_id import get_request_id
from bistro.application.use_cases.adjust_stock import InvalidLogLimitError
from bistro.application.use_cases.advance_order import (
    ConcurrentOrderUpdateError,
    InvalidOrderTransitionError,
)
from bistro.application.use_cases.billing import (
    BillingPersistenceError,
    EmptyReceiptError,
    NotACounterOrderError,
    OrderItemNotFoundError,
    OrderNotOpenError,
    TableStillOccupiedError,
)
from bistro.application.use_cases.catalog import (
    CategoryNotFoundError,
    InvalidCatalogEntryError,
    ProductNotFoundError,
)
from bistro.application.use_cases.get_order import OrderNotFoundError
from bistro.application.use_cases.ledger import (
    InvalidTransactionFilterError,
    TransactionNotFoundError,
)
from bistro.application.use_cases.maintenance import ResetNotConfirmedError
from bistro.application.use_cases.place_order import (
    IdempotencyReplayMismatchError,
    NoValidItemsError,
    OrderPersistenceError,
)
from bistro.application.use_cases.public_menu import MissingTableParameterError
from bistro.application.use_cases.revenue_report import InvalidReportRangeError
from bistro.application.use_cases.settings import InvalidSettingsError
from bistro.application.use_cases.tables import TableAlreadyExistsError, TableNotFoundError
from bistro.domain.billing.receipt import ReceiptItemNotFoundError
from bistro.domain.inventory.entities import InvalidStockAdjustmentError


logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "requestId": get_request_id(),
        },
    )


def _exception_handler(status_code: int, code: str):
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error(
                "request_failed",
                extra={"code": code, "path": request.url.path},
                exc_info=exc,
            )
        details = getattr(exc, "details", None)
        return _error_response(
            status_code=status_code,
            code=code,
            message=str(exc),
            details=details if isinstance(details, dict) else None,
        )

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    return _error_response(
        status_code=http_exc.status_code,
        code=_HTTP_ERROR_CODES.get(http_exc.status_code, "HTTP_ERROR"),
        message=str(http_exc.detail) if http_exc.detail else "request failed",
    )


def _validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # ``ctx`` may hold the raised exception object, which is not JSON serializable.
    return [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": _validation_errors(cast(RequestValidationError, exc))},
    )


def register_exception_handlers(app: FastAPI) -> None:
    mappings: list[tuple[type[Exception], int, str]] = [
        (NoValidItemsError, 400, "NO_VALID_ITEMS"),
        (MissingTableParameterError, 400, "TABLE_PARAMETER_REQUIRED"),
        (InvalidStockAdjustmentError, 400, "INVALID_STOCK_ADJUSTMENT"),
        (InvalidCatalogEntryError, 400, "INVALID_CATALOG_ENTRY"),
        (InvalidReportRangeError, 400, "INVALID_REPORT_RANGE"),
        (InvalidTransactionFilterError, 400, "INVALID_TRANSACTION_FILTER"),
        (InvalidLogLimitError, 400, "INVALID_LIMIT"),
        (InvalidSettingsError, 400, "INVALID_SETTINGS"),
        (ResetNotConfirmedError, 400, "RESET_NOT_CONFIRMED"),
        (OrderNotFoundError, 404, "ORDER_NOT_FOUND"),
        (TableNotFoundError, 404, "TABLE_NOT_FOUND"),
        (OrderItemNotFoundError, 404, "ORDER_ITEM_NOT_FOUND"),
        (ReceiptItemNotFoundError, 404, "ORDER_ITEM_NOT_FOUND"),
        (EmptyReceiptError, 404, "RECEIPT_EMPTY"),
        (CategoryNotFoundError, 404, "CATEGORY_NOT_FOUND"),
        (ProductNotFoundError, 404, "PRODUCT_NOT_FOUND"),
        (TransactionNotFoundError, 404, "TRANSACTION_NOT_FOUND"),
        (
            IdempotencyReplayMismatchError,
            409,
            "IDEMPOTENCY_KEY_REPLAY_DIFFERENT_PAYLOAD",
        ),
        (InvalidOrderTransitionError, 409, "INVALID_ORDER_TRANSITION"),
        (ConcurrentOrderUpdateError, 409, "CONFLICT"),
        (OrderNotOpenError, 409, "ORDER_NOT_OPEN"),
        (NotACounterOrderError, 409, "NOT_A_COUNTER_ORDER"),
        (TableStillOccupiedError, 409, "TABLE_OCCUPIED"),
        (TableAlreadyExistsError, 409, "TABLE_ALREADY_EXISTS"),
        (OrderPersistenceError, 500, "ORDER_PERSISTENCE_FAILED"),
        (BillingPersistenceError, 500, "BILLING_PERSISTENCE_FAILED"),
    ]

    for exc_cls, status_code, code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code, code))

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
