from __future__ import annotations

import random
import re
import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from cafepos.domain.common.ids import MenuItemId, OrderId, StaffId, TableId
from cafepos.domain.common.money import Money
from cafepos.domain.order.billing import PaymentAccrual, PaymentStatus
from cafepos.domain.order.entities import (
    Order,
    OrderAlreadyPaidError,
    OrderCancelledError,
    OrderLine,
    OrderStatus,
    OrderTransitionError,
    UnknownOrderStatusError,
    can_transition,
    create_pending_order,
    parse_order_status,
)
from cafepos.domain.order.numbering import generate_order_number

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def _line(unit_cents: int = 200, quantity: int = 2) -> OrderLine:
    unit_price = Money(amount_cents=unit_cents, currency="SGD")
    return OrderLine(
        line_id=None,
        item_id=MenuItemId(1),
        name="Prata Egg",
        quantity=quantity,
        unit_price=unit_price,
        line_total=unit_price.times(quantity),
    )


def _pending_order(**overrides) -> Order:
    order = create_pending_order(
        order_number="ORD12345678ABCD",
        table_id=TableId(5),
        created_by=StaffId(1),
        lines=[_line()],
        now=NOW,
    )
    return replace(order, order_id=OrderId(1), **overrides)


def test_order_line_quantity_must_be_gte_one() -> None:
    with pytest.raises(ValueError):
        _line(quantity=0)


def test_order_line_total_must_match_quantity() -> None:
    with pytest.raises(ValueError):
        OrderLine(
            line_id=None,
            item_id=MenuItemId(1),
            name="Prata Egg",
            quantity=2,
            unit_price=Money(amount_cents=200, currency="SGD"),
            line_total=Money(amount_cents=300, currency="SGD"),
        )


def test_create_pending_order_computes_subtotal_tax_and_total() -> None:
    order = _pending_order()

    assert order.status == OrderStatus.PENDING
    assert order.payment_status == PaymentStatus.PENDING
    assert order.subtotal.amount_cents == 400
    assert order.tax.amount_cents == 40
    assert order.total.amount_cents == 440


def test_order_total_must_equal_subtotal_plus_tax() -> None:
    order = _pending_order()
    with pytest.raises(ValueError):
        replace(order, total=Money(amount_cents=400, currency="SGD"))


def test_order_requires_lines() -> None:
    with pytest.raises(ValueError):
        create_pending_order(
            order_number="ORD1",
            table_id=TableId(1),
            created_by=StaffId(1),
            lines=[],
            now=NOW,
        )


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        (OrderStatus.PENDING, OrderStatus.CONFIRMED, True),
        (OrderStatus.PENDING, OrderStatus.SERVED, True),
        (OrderStatus.READY, OrderStatus.PREPARING, False),
        (OrderStatus.SERVED, OrderStatus.CANCELLED, True),
        (OrderStatus.SERVED, OrderStatus.SERVED, True),
        (OrderStatus.COMPLETED, OrderStatus.CANCELLED, False),
        (OrderStatus.CANCELLED, OrderStatus.PENDING, False),
        (OrderStatus.COMPLETED, OrderStatus.COMPLETED, True),
    ],
)
def test_status_progression_is_forward_only(current, target, allowed) -> None:
    assert can_transition(current, target) is allowed


def test_transition_to_rejects_backward_moves() -> None:
    order = _pending_order(status=OrderStatus.READY)
    with pytest.raises(OrderTransitionError):
        order.transition_to(OrderStatus.CONFIRMED, NOW)


def test_transition_to_updates_timestamp() -> None:
    later = NOW + timedelta(minutes=5)
    updated = _pending_order().transition_to(OrderStatus.PREPARING, later)

    assert updated.status == OrderStatus.PREPARING
    assert updated.updated_at == later


def test_parse_order_status_is_case_insensitive() -> None:
    assert parse_order_status("served") == OrderStatus.SERVED
    with pytest.raises(UnknownOrderStatusError):
        parse_order_status("Eaten")


def test_full_payment_completes_the_order() -> None:
    order = _pending_order(status=OrderStatus.SERVED)
    paid = order.apply_payment(
        amount=Money(amount_cents=440, currency="SGD"),
        method="Cash",
        paid_before=Money.zero("SGD"),
        now=NOW,
    )

    assert paid.payment_status == PaymentStatus.PAID
    assert paid.status == OrderStatus.COMPLETED
    assert paid.payment_method == "Cash"


def test_partial_payment_keeps_the_order_status() -> None:
    order = _pending_order(status=OrderStatus.READY)
    partial = order.apply_payment(
        amount=Money(amount_cents=100, currency="SGD"),
        method="Card",
        paid_before=Money.zero("SGD"),
        now=NOW,
    )

    assert partial.payment_status == PaymentStatus.PARTIALLY_PAID
    assert partial.status == OrderStatus.READY


def test_cumulative_payments_complete_the_order() -> None:
    order = _pending_order(status=OrderStatus.READY, payment_status=PaymentStatus.PARTIALLY_PAID)
    paid = order.apply_payment(
        amount=Money(amount_cents=240, currency="SGD"),
        method="Card",
        paid_before=Money(amount_cents=200, currency="SGD"),
        now=NOW,
        accrual=PaymentAccrual.CUMULATIVE,
    )

    assert paid.payment_status == PaymentStatus.PAID
    assert paid.status == OrderStatus.COMPLETED


def test_paid_order_rejects_further_payments_regardless_of_amount() -> None:
    order = _pending_order(status=OrderStatus.COMPLETED, payment_status=PaymentStatus.PAID)
    with pytest.raises(OrderAlreadyPaidError):
        order.apply_payment(
            amount=Money(amount_cents=0, currency="SGD"),
            method="Cash",
            paid_before=Money.zero("SGD"),
            now=NOW,
        )


def test_cancelled_order_rejects_payments() -> None:
    order = _pending_order(status=OrderStatus.CANCELLED)
    with pytest.raises(OrderCancelledError):
        order.ensure_payable()


def test_order_number_format() -> None:
    number = generate_order_number(NOW, rng=random.Random(7))

    assert re.fullmatch(r"ORD\d{8}[0-9A-Z]{4}", number)
    assert number[3:11] == str(int(NOW.timestamp() * 1000))[-8:]


def test_order_numbers_differ_for_the_same_instant() -> None:
    rng = random.Random(1)
    numbers = {generate_order_number(NOW, rng=rng) for _ in range(50)}
    assert len(numbers) > 1
