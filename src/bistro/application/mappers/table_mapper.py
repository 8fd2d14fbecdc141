from __future__ import annotations

from bistro.application.dto.responses import TableCorrectionResponse, TableResponse
from bistro.application.mappers.order_mapper import to_money_response
from bistro.domain.table.entities import DiningTable
from bistro.domain.table.reconciliation import TableReconciliation


def to_table_response(table: DiningTable) -> TableResponse:
    return TableResponse(
        tableId=table.table_id,
        name=table.name,
        status=table.status.value,
        total=to_money_response(table.total),
    )


def to_table_correction_response(result: TableReconciliation) -> TableCorrectionResponse:
    return TableCorrectionResponse(
        tableId=result.table.table_id,
        previousStatus=result.table.status.value,
        status=result.healed.status.value,
        previousTotal=to_money_response(result.table.total),
        total=to_money_response(result.healed.total),
    )
