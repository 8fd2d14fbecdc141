from __future__ import annotations

from datetime import datetime
from typing import Protocol

from bistro.domain.common.ids import (
    CategoryId,
    OrderId,
    OrderItemId,
    ProductId,
    TableId,
    TransactionId,
)
from bistro.domain.common.money import Money
from bistro.domain.inventory.entities import InventoryLog
from bistro.domain.ledger.entities import (
    FinancialTransaction,
    TransactionStatus,
    TransactionType,
)
from bistro.domain.menu.entities import Category, Product
from bistro.domain.order.entities import Order, OrderItem, OrderStatus
from bistro.domain.settings.entities import Settings
from bistro.domain.table.entities import DiningTable


class CatalogRepository(Protocol):
    def list_categories(self) -> list[Category]: ...

    def get_category(self, category_id: CategoryId) -> Category | None: ...

    def add_category(self, category: Category) -> None: ...

    def update_category(self, category: Category) -> None: ...

    def delete_category(self, category_id: CategoryId) -> bool: ...

    def list_products(self, active_only: bool = False) -> list[Product]: ...

    def get_product(self, product_id: ProductId) -> Product | None: ...

    def get_products(self, product_ids: list[ProductId]) -> list[Product]: ...

    def add_product(self, product: Product) -> None: ...

    def update_product(self, product: Product) -> None: ...

    def delete_product(self, product_id: ProductId) -> bool: ...

    def apply_stock_deltas(self, deltas: dict[ProductId, int]) -> None: ...


class TableRepository(Protocol):
    def list(self) -> list[DiningTable]: ...

    def get(self, table_id: TableId) -> DiningTable | None: ...

    def add(self, table: DiningTable) -> None: ...

    def save(self, table: DiningTable) -> None: ...

    def free_all(self) -> int: ...


class OrderRepository(Protocol):
    def get(self, order_id: OrderId) -> Order | None: ...

    def get_by_idempotency(self, key: str) -> Order | None: ...

    def find_by_item(self, item_id: OrderItemId) -> Order | None: ...

    def insert_order(self, order: Order) -> None: ...

    def delete_order(self, order_id: OrderId) -> None: ...

    def insert_items(self, order_id: OrderId, items: list[OrderItem]) -> None: ...

    def delete_items(self, item_ids: list[OrderItemId]) -> None: ...

    def update_item_quantity(self, item_id: OrderItemId, quantity: int) -> None: ...

    def update_total(self, order_id: OrderId, total: Money) -> None: ...

    def update_status_if(
        self,
        order_id: OrderId,
        expected_status: OrderStatus,
        new_status: OrderStatus,
    ) -> Order: ...

    def set_status(self, order_ids: list[OrderId], new_status: OrderStatus) -> int: ...

    def list_open(self) -> list[Order]: ...

    def list_open_for_table(self, table_id: TableId) -> list[Order]: ...

    def list_open_counter(self) -> list[Order]: ...

    def list_active_kitchen(self) -> list[Order]: ...

    def list_since(self, start: datetime) -> list[Order]: ...

    def list_recent(self, limit: int) -> list[Order]: ...

    def delete_finalized(self) -> int: ...

    def delete_all(self) -> int: ...


class InventoryLogRepository(Protocol):
    def add(self, log: InventoryLog) -> None: ...

    def list_recent(self, limit: int) -> list[InventoryLog]: ...


class LedgerRepository(Protocol):
    def add(self, transaction: FinancialTransaction) -> None: ...

    def get(self, transaction_id: TransactionId) -> FinancialTransaction | None: ...

    def update(self, transaction: FinancialTransaction) -> None: ...

    def delete(self, transaction_id: TransactionId) -> bool: ...

    def list(
        self,
        type: TransactionType | None = None,
        status: TransactionStatus | None = None,
    ) -> list[FinancialTransaction]: ...


class SettingsRepository(Protocol):
    def get(self) -> Settings | None: ...

    def save(self, settings: Settings) -> None: ...


class OptimisticConcurrencyError(Exception):
    pass


class DuplicateIdempotencyKeyError(Exception):
    pass
