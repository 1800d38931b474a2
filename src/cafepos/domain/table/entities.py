from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from cafepos.domain.common.ids import TableId
from cafepos.domain.order.entities import OrderStatus


class TableStatus(str, Enum):
    AVAILABLE = "Available"
    ORDERING = "Ordering"
    FULL = "Full"
    BOOKED = "Booked"


OCCUPIED_STATUSES = frozenset({TableStatus.ORDERING, TableStatus.FULL})


def parse_table_status(value: str) -> TableStatus:
    normalized = value.strip().lower()
    for status in TableStatus:
        if status.value.lower() == normalized:
            return status
    raise UnknownTableStatusError(f"invalid table status: {value}")


@dataclass(frozen=True)
class Table:
    table_id: TableId | None
    number: str
    zone: str
    seats: int
    status: TableStatus = TableStatus.AVAILABLE
    version: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.number.strip():
            raise ValueError("table number must be non-empty")
        if not self.zone.strip():
            raise ValueError("zone must be non-empty")
        if self.seats < 1:
            raise ValueError("seats must be >= 1")

    def ensure_accepts_new_order(self) -> None:
        if self.status == TableStatus.FULL:
            raise TableFullError(f"table {self.number} is full")

    def with_status(self, status: TableStatus, now: datetime) -> Table:
        return replace(self, status=status, updated_at=now)


def table_status_for_order(order_status: OrderStatus) -> TableStatus:
    """Table status implied by the status of the order currently attached to it."""
    if order_status in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
        return TableStatus.AVAILABLE
    if order_status == OrderStatus.SERVED:
        return TableStatus.FULL
    return TableStatus.ORDERING


class TableFullError(Exception):
    pass


class UnknownTableStatusError(ValueError):
    pass
