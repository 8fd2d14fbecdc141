from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timezone

from bistro.application.ports.repositories import (
    DuplicateIdempotencyKeyError,
    OptimisticConcurrencyError,
)
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
from bistro.domain.order.entities import (
    ACTIVE_KITCHEN_STATUSES,
    CLOSED_STATUSES,
    Order,
    OrderItem,
    OrderStatus,
)
from bistro.domain.settings.entities import Settings
from bistro.domain.table.entities import DiningTable

CURRENCY = "BRL"
NOW = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)


def brl(cents: int) -> Money:
    return Money(amount_cents=cents, currency=CURRENCY)


class _Failing:
    """Raise from any method named in ``fail_on``."""

    def __init__(self) -> None:
        self.fail_on: set[str] = set()

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RuntimeError(f"{operation} failed")


class FakeCatalogRepository(_Failing):
    def __init__(self) -> None:
        super().__init__()
        self.categories: dict[CategoryId, Category] = {}
        self.products: dict[ProductId, Product] = {}
        self.applied_deltas: list[dict[ProductId, int]] = []

    def list_categories(self) -> list[Category]:
        return sorted(self.categories.values(), key=lambda category: category.name)

    def get_category(self, category_id: CategoryId) -> Category | None:
        return self.categories.get(category_id)

    def add_category(self, category: Category) -> None:
        self.categories[category.category_id] = category

    def update_category(self, category: Category) -> None:
        self.categories[category.category_id] = category

    def delete_category(self, category_id: CategoryId) -> bool:
        if self.categories.pop(category_id, None) is None:
            return False
        for product_id, product in list(self.products.items()):
            if product.category_id == category_id:
                self.products[product_id] = replace(product, category_id=None, category_name=None)
        return True

    def list_products(self, active_only: bool = False) -> list[Product]:
        products = sorted(self.products.values(), key=lambda product: product.name)
        if active_only:
            return [product for product in products if product.is_active]
        return products

    def get_product(self, product_id: ProductId) -> Product | None:
        return self.products.get(product_id)

    def get_products(self, product_ids: list[ProductId]) -> list[Product]:
        self._check("get_products")
        return [self.products[pid] for pid in product_ids if pid in self.products]

    def add_product(self, product: Product) -> None:
        self.products[product.product_id] = product

    def update_product(self, product: Product) -> None:
        self.products[product.product_id] = product

    def delete_product(self, product_id: ProductId) -> bool:
        return self.products.pop(product_id, None) is not None

    def apply_stock_deltas(self, deltas: dict[ProductId, int]) -> None:
        self._check("apply_stock_deltas")
        self.applied_deltas.append(dict(deltas))
        for product_id, delta in deltas.items():
            product = self.products.get(product_id)
            if product is not None:
                self.products[product_id] = product.adjust_stock(delta)


class FakeTableRepository(_Failing):
    def __init__(self) -> None:
        super().__init__()
        self.tables: dict[TableId, DiningTable] = {}

    def list(self) -> list[DiningTable]:
        return list(self.tables.values())

    def get(self, table_id: TableId) -> DiningTable | None:
        return self.tables.get(table_id)

    def add(self, table: DiningTable) -> None:
        self.tables[table.table_id] = table

    def save(self, table: DiningTable) -> None:
        self._check("save")
        self.tables[table.table_id] = table

    def free_all(self) -> int:
        for table_id, table in list(self.tables.items()):
            self.tables[table_id] = table.free()
        return len(self.tables)


class FakeOrderRepository(_Failing):
    def __init__(self) -> None:
        super().__init__()
        self.orders: dict[OrderId, Order] = {}
        # Simulates another writer winning the compare-and-set.
        self.concurrent_status: OrderStatus | None = None

    def add(self, order: Order) -> Order:
        self.orders[order.order_id] = order
        return order

    def get(self, order_id: OrderId) -> Order | None:
        return self.orders.get(order_id)

    def get_by_idempotency(self, key: str) -> Order | None:
        for order in self.orders.values():
            if order.idempotency_key == key:
                return order
        return None

    def find_by_item(self, item_id: OrderItemId) -> Order | None:
        for order in self.orders.values():
            if any(item.item_id == item_id for item in order.items):
                return order
        return None

    def insert_order(self, order: Order) -> None:
        self._check("insert_order")
        if order.idempotency_key is not None and self.get_by_idempotency(order.idempotency_key):
            raise DuplicateIdempotencyKeyError(order.idempotency_key)
        self.orders[order.order_id] = replace(order, items=[])

    def delete_order(self, order_id: OrderId) -> None:
        self.orders.pop(order_id, None)

    def insert_items(self, order_id: OrderId, items: list[OrderItem]) -> None:
        self._check("insert_items")
        order = self.orders[order_id]
        self.orders[order_id] = replace(order, items=[*order.items, *items])

    def delete_items(self, item_ids: list[OrderItemId]) -> None:
        self._check("delete_items")
        for order_id, order in list(self.orders.items()):
            kept = [item for item in order.items if item.item_id not in item_ids]
            self.orders[order_id] = replace(order, items=kept)

    def update_item_quantity(self, item_id: OrderItemId, quantity: int) -> None:
        self._check("update_item_quantity")
        for order_id, order in list(self.orders.items()):
            items = [
                item.with_quantity(quantity) if item.item_id == item_id else item
                for item in order.items
            ]
            self.orders[order_id] = replace(order, items=items)

    def update_total(self, order_id: OrderId, total: Money) -> None:
        self._check("update_total")
        self.orders[order_id] = replace(self.orders[order_id], total=total)

    def update_status_if(
        self,
        order_id: OrderId,
        expected_status: OrderStatus,
        new_status: OrderStatus,
    ) -> Order:
        if self.concurrent_status is not None:
            self.orders[order_id] = replace(self.orders[order_id], status=self.concurrent_status)
            self.concurrent_status = None
        order = self.orders[order_id]
        if order.status != expected_status:
            raise OptimisticConcurrencyError(f"order {order_id} is no longer {expected_status}")
        updated = replace(order, status=new_status)
        self.orders[order_id] = updated
        return updated

    def set_status(self, order_ids: list[OrderId], new_status: OrderStatus) -> int:
        self._check("set_status")
        for order_id in order_ids:
            self.orders[order_id] = replace(self.orders[order_id], status=new_status)
        return len(order_ids)

    def list_open(self) -> list[Order]:
        return [order for order in self._ordered() if order.status not in CLOSED_STATUSES]

    def list_open_for_table(self, table_id: TableId) -> list[Order]:
        return [order for order in self.list_open() if order.table_id == table_id]

    def list_open_counter(self) -> list[Order]:
        return [order for order in self.list_open() if order.table_id is None]

    def list_active_kitchen(self) -> list[Order]:
        return [order for order in self._ordered() if order.status in ACTIVE_KITCHEN_STATUSES]

    def list_since(self, start: datetime) -> list[Order]:
        return [order for order in self._ordered() if order.created_at >= start]

    def list_recent(self, limit: int) -> list[Order]:
        return list(reversed(self._ordered()))[:limit]

    def delete_finalized(self) -> int:
        finalized = [
            order_id
            for order_id, order in self.orders.items()
            if order.status == OrderStatus.FINALIZED
        ]
        for order_id in finalized:
            del self.orders[order_id]
        return len(finalized)

    def delete_all(self) -> int:
        count = len(self.orders)
        self.orders.clear()
        return count

    def _ordered(self) -> list[Order]:
        return sorted(self.orders.values(), key=lambda order: (order.created_at, order.order_id))


class FakeInventoryLogRepository(_Failing):
    def __init__(self) -> None:
        super().__init__()
        self.logs: list[InventoryLog] = []

    def add(self, log: InventoryLog) -> None:
        self._check("add")
        self.logs.append(log)

    def list_recent(self, limit: int) -> list[InventoryLog]:
        return sorted(self.logs, key=lambda log: log.created_at, reverse=True)[:limit]


class FakeLedgerRepository:
    def __init__(self) -> None:
        self.transactions: dict[TransactionId, FinancialTransaction] = {}

    def add(self, transaction: FinancialTransaction) -> None:
        self.transactions[transaction.transaction_id] = transaction

    def get(self, transaction_id: TransactionId) -> FinancialTransaction | None:
        return self.transactions.get(transaction_id)

    def update(self, transaction: FinancialTransaction) -> None:
        self.transactions[transaction.transaction_id] = transaction

    def delete(self, transaction_id: TransactionId) -> bool:
        return self.transactions.pop(transaction_id, None) is not None

    def list(
        self,
        type: TransactionType | None = None,
        status: TransactionStatus | None = None,
    ) -> list[FinancialTransaction]:
        return [
            transaction
            for transaction in self.transactions.values()
            if (type is None or transaction.type == type)
            and (status is None or transaction.status == status)
        ]


class FakeSettingsRepository:
    def __init__(self) -> None:
        self.settings: Settings | None = None

    def get(self) -> Settings | None:
        return self.settings

    def save(self, settings: Settings) -> None:
        self.settings = settings


class FakePublisher:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []
        self.fail = False

    def publish(self, channel: str, message: str) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.messages.append((channel, message))

    def event_types(self, channel: str | None = None) -> list[str]:
        return [
            json.loads(message)["event_type"]
            for published_channel, message in self.messages
            if channel is None or published_channel == channel
        ]


class FakeCache:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.fail = False
        self.deleted: list[str] = []

    def get(self, key: str) -> str | None:
        if self.fail:
            raise ConnectionError("redis down")
        return self.values.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.values[key] = value

    def delete(self, key: str) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.deleted.append(key)
        self.values.pop(key, None)


