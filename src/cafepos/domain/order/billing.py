from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from cafepos.domain.common.money import Money, sum_money

GST_RATE = Decimal("0.10")


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    PARTIALLY_PAID = "Partially Paid"


class PaymentAccrual(str, Enum):
    # SINGLE compares only the incoming payment with the order total.
    SINGLE = "single"
    CUMULATIVE = "cumulative"


@dataclass(frozen=True)
class Bill:
    subtotal: Money
    tax: Money
    total: Money


def compute_bill(line_totals: list[Money], currency: str, tax_rate: Decimal = GST_RATE) -> Bill:
    if tax_rate < 0:
        raise ValueError("tax_rate must be >= 0")
    subtotal = sum_money(line_totals, currency)
    tax = subtotal.percent(tax_rate)
    return Bill(subtotal=subtotal, tax=tax, total=subtotal + tax)


def evaluate_payment_status(
    total: Money,
    amount: Money,
    paid_before: Money,
    accrual: PaymentAccrual = PaymentAccrual.SINGLE,
) -> PaymentStatus:
    covered = amount if accrual == PaymentAccrual.SINGLE else amount + paid_before
    if covered.amount_cents >= total.amount_cents:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIALLY_PAID
