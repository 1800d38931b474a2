from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from cafepos.domain.common.money import MAX_AMOUNT_CENTS, Money, sum_money
from cafepos.domain.order.billing import (
    PaymentAccrual,
    PaymentStatus,
    compute_bill,
    evaluate_payment_status,
)


def _sgd(cents: int) -> Money:
    return Money(amount_cents=cents, currency="SGD")


def test_money_rejects_negative_amounts_and_bad_currency() -> None:
    with pytest.raises(ValueError):
        Money(amount_cents=-1, currency="SGD")
    with pytest.raises(ValueError):
        Money(amount_cents=100, currency="sgd")


def test_money_from_decimal_rounds_half_up() -> None:
    assert Money.from_decimal(Decimal("4.40"), "SGD").amount_cents == 440
    assert Money.from_decimal("2.005", "SGD").amount_cents == 201
    assert Money.from_decimal(1.3, "SGD").amount_cents == 130
    assert _sgd(440).to_decimal() == Decimal("4.40")


def test_money_never_mixes_currencies() -> None:
    with pytest.raises(ValueError):
        _sgd(100) + Money(amount_cents=100, currency="USD")
    with pytest.raises(ValueError):
        sum_money([_sgd(100), Money(amount_cents=1, currency="USD")], "SGD")


def test_bill_applies_gst_on_subtotal() -> None:
    bill = compute_bill([_sgd(400)], "SGD")

    assert bill.subtotal == _sgd(400)
    assert bill.tax == _sgd(40)
    assert bill.total == _sgd(440)


def test_bill_tax_rounds_half_up_to_the_cent() -> None:
    # 1.25 * 10% = 0.125 -> 0.13
    bill = compute_bill([_sgd(125)], "SGD")

    assert bill.tax == _sgd(13)
    assert bill.total.amount_cents == bill.subtotal.amount_cents + bill.tax.amount_cents


def test_bill_accepts_a_custom_rate() -> None:
    bill = compute_bill([_sgd(1000), _sgd(500)], "SGD", tax_rate=Decimal("0.07"))

    assert bill.subtotal == _sgd(1500)
    assert bill.tax == _sgd(105)


def test_single_accrual_ignores_prior_payments() -> None:
    status = evaluate_payment_status(
        total=_sgd(1000),
        amount=_sgd(500),
        paid_before=_sgd(500),
        accrual=PaymentAccrual.SINGLE,
    )
    assert status == PaymentStatus.PARTIALLY_PAID


def test_cumulative_accrual_sums_prior_payments() -> None:
    status = evaluate_payment_status(
        total=_sgd(1000),
        amount=_sgd(500),
        paid_before=_sgd(500),
        accrual=PaymentAccrual.CUMULATIVE,
    )
    assert status == PaymentStatus.PAID


def test_overpayment_counts_as_paid() -> None:
    status = evaluate_payment_status(total=_sgd(440), amount=_sgd(500), paid_before=Money.zero("SGD"))
    assert status == PaymentStatus.PAID


def test_money_from_decimal_rejects_amounts_above_limit() -> None:
    assert Money.from_decimal(Decimal(MAX_AMOUNT_CENTS) / 100, "SGD").amount_cents == MAX_AMOUNT_CENTS
    with pytest.raises(ValueError):
        Money.from_decimal("1e20", "SGD")
    with pytest.raises(ValueError):
        Money.from_decimal("1e40", "SGD")
