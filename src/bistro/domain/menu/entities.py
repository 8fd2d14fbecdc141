from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from bistro.domain.common.ids import CategoryId, ProductId
from bistro.domain.common.money import Money

LOW_STOCK_THRESHOLD = 5


class ProductStatus(str, Enum):
    ACTIVE = "Active"
    PAUSED = "Paused"


@dataclass(frozen=True)
class Category:
    category_id: CategoryId
    name: str
    icon: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")


@dataclass(frozen=True)
class Product:
    product_id: ProductId
    name: str
    price: Money
    stock_quantity: int
    status: ProductStatus
    category_id: CategoryId | None = None
    category_name: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity < LOW_STOCK_THRESHOLD

    def with_status(self, active: bool) -> Product:
        return replace(self, status=ProductStatus.ACTIVE if active else ProductStatus.PAUSED)

    def adjust_stock(self, delta: int) -> Product:
        # Negative stock is allowed; adjustments record reality, not policy.
        return replace(self, stock_quantity=self.stock_quantity + delta)
