from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from bistro.domain.common.ids import TableId
from bistro.domain.common.money import Money


class TableStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    DIRTY = "dirty"


@dataclass(frozen=True)
class DiningTable:
    table_id: TableId
    name: str
    status: TableStatus
    total: Money

    def occupy(self, total: Money) -> DiningTable:
        return replace(self, status=TableStatus.OCCUPIED, total=total)

    def mark_dirty(self) -> DiningTable:
        return replace(self, status=TableStatus.DIRTY, total=Money.zero(self.total.currency))

    def free(self) -> DiningTable:
        return replace(self, status=TableStatus.AVAILABLE, total=Money.zero(self.total.currency))

    def release(self) -> DiningTable:
        if self.status == TableStatus.OCCUPIED:
            raise TableOccupiedError(f"table {self.table_id} still has an open tab")
        return self.free()


class TableOccupiedError(Exception):
    pass
