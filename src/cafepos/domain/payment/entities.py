from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from cafepos.domain.common.ids import OrderId, PaymentId
from cafepos.domain.common.money import Money


class PaymentRecordStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"
    REFUNDED = "Refunded"


@dataclass(frozen=True)
class PaymentRecord:
    payment_id: PaymentId | None
    order_id: OrderId
    amount: Money
    method: str
    status: PaymentRecordStatus
    created_at: datetime
    external_txn_id: str | None = None

    def __post_init__(self) -> None:
        if self.amount.amount_cents <= 0:
            raise ValueError("payment amount must be > 0")
        if not self.method.strip():
            raise ValueError("payment method must be non-empty")


def completed_payment(
    order_id: OrderId,
    amount: Money,
    method: str,
    now: datetime,
    external_txn_id: str | None = None,
) -> PaymentRecord:
    return PaymentRecord(
        payment_id=None,
        order_id=order_id,
        amount=amount,
        method=method,
        status=PaymentRecordStatus.COMPLETED,
        created_at=now,
        external_txn_id=external_txn_id,
    )
