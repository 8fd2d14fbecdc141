from __future__ import annotations

from typing import NewType

CategoryId = NewType("CategoryId", str)
ProductId = NewType("ProductId", str)
TableId = NewType("TableId", int)
OrderId = NewType("OrderId", str)
OrderItemId = NewType("OrderItemId", str)
InventoryLogId = NewType("InventoryLogId", str)
TransactionId = NewType("TransactionId", str)
