from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from bistro.domain.common.ids import InventoryLogId, ProductId


class InvalidStockAdjustmentError(ValueError):
    pass


@dataclass(frozen=True)
class StockAdjustment:
    product_id: ProductId
    delta: int
    reason: str

    def __post_init__(self) -> None:
        if self.delta == 0:
            raise InvalidStockAdjustmentError("delta must be non-zero")
        if not self.reason.strip():
            raise InvalidStockAdjustmentError("reason is required")


@dataclass(frozen=True)
class InventoryLog:
    log_id: InventoryLogId
    product_id: ProductId
    change_amount: int
    reason: str
    created_at: datetime
    product_name: str | None = None
