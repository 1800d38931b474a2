from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from cafepos.domain.common.ids import MenuItemId, OrderId, OrderLineId, StaffId, TableId
from cafepos.domain.common.money import Money, sum_money
from cafepos.domain.order.billing import (
    GST_RATE,
    PaymentAccrual,
    PaymentStatus,
    compute_bill,
    evaluate_payment_status,
)


class OrderStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    PREPARING = "Preparing"
    READY = "Ready"
    SERVED = "Served"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


_PROGRESSION = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.SERVED,
    OrderStatus.COMPLETED,
]

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})
ACTIVE_STATUSES = frozenset(set(OrderStatus) - TERMINAL_STATUSES)


def parse_order_status(value: str) -> OrderStatus:
    normalized = value.strip().lower()
    for status in OrderStatus:
        if status.value.lower() == normalized:
            return status
    raise UnknownOrderStatusError(f"invalid order status: {value}")


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Forward-only progression; Cancelled from any active status; same status is a no-op."""
    if current == target:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if target == OrderStatus.CANCELLED:
        return True
    return _PROGRESSION.index(target) > _PROGRESSION.index(current)


@dataclass(frozen=True)
class OrderLine:
    line_id: OrderLineId | None
    item_id: MenuItemId
    name: str
    quantity: int
    unit_price: Money
    line_total: Money
    modifiers: list[str] | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.unit_price.currency != self.line_total.currency:
            raise ValueError("line_total currency must match unit_price currency")
        expected_total = self.unit_price.amount_cents * self.quantity
        if self.line_total.amount_cents != expected_total:
            raise ValueError("line_total must equal unit_price * quantity")


@dataclass(frozen=True)
class Order:
    order_id: OrderId | None
    order_number: str
    table_id: TableId | None
    created_by: StaffId
    status: OrderStatus
    payment_status: PaymentStatus
    lines: list[OrderLine]
    subtotal: Money
    tax: Money
    total: Money
    created_at: datetime
    updated_at: datetime
    notes: str | None = None
    payment_method: str | None = None
    version: int = 1

    def __post_init__(self) -> None:
        if not self.lines:
            raise ValueError("order must contain at least one line")
        currency = self.lines[0].line_total.currency
        if {self.subtotal.currency, self.tax.currency, self.total.currency} != {currency}:
            raise ValueError("order amounts must share the line currency")
        expected_subtotal = sum_money([line.line_total for line in self.lines], currency)
        if self.subtotal != expected_subtotal:
            raise ValueError("order subtotal must equal sum of line totals")
        if self.total != self.subtotal + self.tax:
            raise ValueError("order total must equal subtotal + tax")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def transition_to(self, target: OrderStatus, now: datetime) -> Order:
        if not can_transition(self.status, target):
            raise OrderTransitionError(
                f"cannot move order {self.order_number} from {self.status.value} to {target.value}"
            )
        return replace(self, status=target, updated_at=now)

    def ensure_payable(self) -> None:
        if self.payment_status == PaymentStatus.PAID:
            raise OrderAlreadyPaidError(f"order {self.order_number} is already paid")
        if self.status == OrderStatus.CANCELLED:
            raise OrderCancelledError(f"order {self.order_number} is cancelled")

    def apply_payment(
        self,
        amount: Money,
        method: str,
        paid_before: Money,
        now: datetime,
        accrual: PaymentAccrual = PaymentAccrual.SINGLE,
    ) -> Order:
        self.ensure_payable()
        if amount.amount_cents <= 0:
            raise ValueError("payment amount must be > 0")

        payment_status = evaluate_payment_status(
            total=self.total,
            amount=amount,
            paid_before=paid_before,
            accrual=accrual,
        )
        status = OrderStatus.COMPLETED if payment_status == PaymentStatus.PAID else self.status
        return replace(
            self,
            payment_status=payment_status,
            payment_method=method,
            status=status,
            updated_at=now,
        )


def create_pending_order(
    order_number: str,
    table_id: TableId,
    created_by: StaffId,
    lines: list[OrderLine],
    now: datetime,
    notes: str | None = None,
    tax_rate: Decimal = GST_RATE,
) -> Order:
    if not lines:
        raise ValueError("order must contain at least one line")

    currency = lines[0].line_total.currency
    bill = compute_bill([line.line_total for line in lines], currency, tax_rate)
    return Order(
        order_id=None,
        order_number=order_number,
        table_id=table_id,
        created_by=created_by,
        status=OrderStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        lines=lines,
        subtotal=bill.subtotal,
        tax=bill.tax,
        total=bill.total,
        created_at=now,
        updated_at=now,
        notes=notes,
    )


class OrderTransitionError(Exception):
    pass


class UnknownOrderStatusError(ValueError):
    pass


class OrderAlreadyPaidError(Exception):
    pass


class OrderCancelledError(Exception):
    pass
