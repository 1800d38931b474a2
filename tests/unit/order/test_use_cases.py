from __future__ import annotations

import sys
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from cafepos.application.dto.requests import (
    CreateOrderRequest,
    OrderItemRequest,
    RecordPaymentRequest,
)
from cafepos.application.ports.repositories import (
    ActiveOrderExistsError,
    OptimisticConcurrencyError,
    OrderDetails,
    OrderNumberConflictError,
)
from cafepos.application.use_cases.create_order import (
    MAX_LINE_QUANTITY,
    CreateOrder,
    EmptyOrderError,
    InvalidQuantityError,
    MenuItemUnavailableError,
    OrderNumberExhaustedError,
    OrderTooLargeError,
    TableHasActiveOrderError,
    TableIsFullError,
)
from cafepos.application.use_cases.get_order import OrderNotFoundError
from cafepos.application.use_cases.list_tables import TableNotFoundError
from cafepos.application.use_cases.manage_menu import MenuItemNotFoundError
from cafepos.application.use_cases.record_payment import (
    InvalidPaymentAmountError,
    OrderAlreadyPaidForError,
    PaymentOnCancelledOrderError,
    RecordPayment,
)
from cafepos.application.use_cases.update_order_status import (
    DisallowedOrderTransitionError,
    InvalidOrderStatusError,
    OrderConflictError,
    UpdateOrderStatus,
)
from cafepos.domain.common.ids import CategoryId, MenuItemId, OrderId, PaymentId, StaffId, TableId
from cafepos.domain.common.money import MAX_AMOUNT_CENTS, Money
from cafepos.domain.menu.entities import MenuItem
from cafepos.domain.order.billing import PaymentAccrual, PaymentStatus
from cafepos.domain.order.entities import Order, OrderLine, OrderStatus, create_pending_order
from cafepos.domain.staff.entities import Staff, StaffRole
from cafepos.domain.table.entities import Table, TableStatus

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)

WAITER = Staff(staff_id=StaffId(2), name="Floor Waiter", employee_id="0002", role=StaffRole.WAITER)
CASHIER = Staff(staff_id=StaffId(3), name="Front Cashier", employee_id="0003", role=StaffRole.CASHIER)


class FakeMenuRepository:
    def __init__(self, items: list[MenuItem]):
        self._items = {item.item_id: item for item in items}

    def get_items(self, item_ids):
        return {item_id: self._items[item_id] for item_id in item_ids if item_id in self._items}


class FakeTableRepository:
    def __init__(self, table: Table | None):
        self._table = table

    def get(self, table_id: TableId) -> Table | None:
        return self._table


class FakeOrderRepository:
    def __init__(self) -> None:
        self.orders: dict[OrderId, Order] = {}
        self.payments = []
        self.table_statuses: list[TableStatus | None] = []
        self.taken_numbers: set[str] = set()
        self.active_tables: set[TableId] = set()
        self.fail_next_save = False
        self._next_id = 1

    def _details(self, order: Order) -> OrderDetails:
        paid = sum(
            payment.amount.amount_cents for payment in self.payments if payment.order_id == order.order_id
        )
        return OrderDetails(
            order=order,
            table_number="5",
            table_zone="Section 2",
            created_by_name="Floor Waiter",
            created_by_employee_id="0002",
            paid_cents=paid,
        )

    def add_for_table(self, order: Order, expected_table_version: int) -> OrderDetails:
        if order.order_number in self.taken_numbers:
            raise OrderNumberConflictError(order.order_number)
        if order.table_id in self.active_tables:
            raise ActiveOrderExistsError(str(order.table_id))
        stored = replace(order, order_id=OrderId(self._next_id))
        self._next_id += 1
        self.orders[stored.order_id] = stored
        self.table_statuses.append(TableStatus.ORDERING)
        return self._details(stored)

    def get(self, order_id: OrderId) -> OrderDetails | None:
        order = self.orders.get(order_id)
        return self._details(order) if order is not None else None

    def save_transition(self, order: Order, table_status: TableStatus, expected_version: int) -> OrderDetails:
        current = self.orders[order.order_id]
        if self.fail_next_save or current.version != expected_version:
            self.fail_next_save = False
            raise OptimisticConcurrencyError(str(order.order_id))
        stored = replace(order, version=expected_version + 1)
        self.orders[order.order_id] = stored
        self.table_statuses.append(table_status)
        return self._details(stored)

    def add_payment(self, order, payment, table_status, expected_version):
        current = self.orders[order.order_id]
        if current.version != expected_version:
            raise OptimisticConcurrencyError(str(order.order_id))
        self.orders[order.order_id] = replace(order, version=expected_version + 1)
        stored = replace(payment, payment_id=PaymentId(len(self.payments) + 1))
        self.payments.append(stored)
        self.table_statuses.append(table_status)
        return stored

    def paid_cents(self, order_id: OrderId) -> int:
        return sum(payment.amount.amount_cents for payment in self.payments if payment.order_id == order_id)


def _prata_egg(is_available: bool = True) -> MenuItem:
    return MenuItem(
        item_id=MenuItemId(2),
        name="Prata Egg",
        price_money=Money(amount_cents=200, currency="SGD"),
        category_id=CategoryId(1),
        is_available=is_available,
    )


def _table(status: TableStatus = TableStatus.AVAILABLE) -> Table:
    return Table(table_id=TableId(5), number="5", zone="Section 2", seats=4, status=status)


def _request(quantity: int = 2, items: list[OrderItemRequest] | None = None) -> CreateOrderRequest:
    if items is None:
        items = [OrderItemRequest(menuItemId=2, quantity=quantity)]
    return CreateOrderRequest(tableId=5, items=items)


def _use_case(
    orders: FakeOrderRepository,
    table: Table | None = None,
    item: MenuItem | None = None,
    numbers: list[str] | None = None,
) -> CreateOrder:
    sequence = iter(numbers or [f"ORD{index:08d}AAAA" for index in range(1, 20)])
    return CreateOrder(
        menu_repository=FakeMenuRepository([item or _prata_egg()]),
        table_repository=FakeTableRepository(table if table is not None else _table()),
        order_repository=orders,
        currency="SGD",
        number_generator=lambda now: next(sequence),
    )


def _stored_order(
    orders: FakeOrderRepository,
    status: OrderStatus = OrderStatus.PENDING,
    payment_status: PaymentStatus = PaymentStatus.PENDING,
) -> OrderId:
    unit_price = Money(amount_cents=200, currency="SGD")
    order = create_pending_order(
        order_number="ORD00000001AAAA",
        table_id=TableId(5),
        created_by=WAITER.staff_id,
        lines=[
            OrderLine(
                line_id=None,
                item_id=MenuItemId(2),
                name="Prata Egg",
                quantity=2,
                unit_price=unit_price,
                line_total=unit_price.times(2),
            )
        ],
        now=NOW,
    )
    order = replace(order, order_id=OrderId(1), status=status, payment_status=payment_status)
    orders.orders[order.order_id] = order
    return order.order_id


def test_create_order_prices_lines_and_applies_gst() -> None:
    orders = FakeOrderRepository()

    response = _use_case(orders).execute(_request(), WAITER)

    assert response.status == "Pending"
    assert response.paymentStatus == "Pending"
    assert response.subtotal.amountCents == 400
    assert response.tax.amountCents == 40
    assert response.total.amountCents == 440
    assert response.createdById == 2
    assert response.lines[0].name == "Prata Egg"
    assert response.lines[0].lineTotal.amountCents == 400


def test_create_order_rejects_full_table() -> None:
    with pytest.raises(TableIsFullError):
        _use_case(FakeOrderRepository(), table=_table(TableStatus.FULL)).execute(_request(), WAITER)


def test_create_order_rejects_unknown_table() -> None:
    use_case = CreateOrder(
        menu_repository=FakeMenuRepository([_prata_egg()]),
        table_repository=FakeTableRepository(None),
        order_repository=FakeOrderRepository(),
        currency="SGD",
    )
    with pytest.raises(TableNotFoundError):
        use_case.execute(_request(), WAITER)


def test_create_order_rejects_unavailable_item() -> None:
    with pytest.raises(MenuItemUnavailableError):
        _use_case(FakeOrderRepository(), item=_prata_egg(is_available=False)).execute(_request(), WAITER)


def test_create_order_rejects_missing_item() -> None:
    request = _request(items=[OrderItemRequest(menuItemId=99, quantity=1)])
    with pytest.raises(MenuItemNotFoundError):
        _use_case(FakeOrderRepository()).execute(request, WAITER)


def test_create_order_requires_items() -> None:
    with pytest.raises(EmptyOrderError):
        _use_case(FakeOrderRepository()).execute(_request(items=[]), WAITER)


def test_create_order_rejects_zero_quantity() -> None:
    with pytest.raises(InvalidQuantityError):
        _use_case(FakeOrderRepository()).execute(_request(quantity=0), WAITER)


def test_create_order_rejects_quantity_above_limit() -> None:
    orders = FakeOrderRepository()

    with pytest.raises(InvalidQuantityError) as exc_info:
        _use_case(orders).execute(_request(quantity=MAX_LINE_QUANTITY + 1), WAITER)

    assert exc_info.value.details == {"min": 1, "max": MAX_LINE_QUANTITY}
    assert orders.orders == {}


def test_create_order_rejects_subtotal_above_limit() -> None:
    orders = FakeOrderRepository()
    platter = replace(_prata_egg(), price_money=Money(amount_cents=MAX_AMOUNT_CENTS, currency="SGD"))

    with pytest.raises(OrderTooLargeError):
        _use_case(orders, item=platter).execute(_request(quantity=2), WAITER)
    assert orders.orders == {}


def test_create_order_retries_on_order_number_collision() -> None:
    orders = FakeOrderRepository()
    orders.taken_numbers.add("ORD00000001AAAA")

    response = _use_case(orders, numbers=["ORD00000001AAAA", "ORD00000002BBBB"]).execute(_request(), WAITER)

    assert response.orderNumber == "ORD00000002BBBB"


def test_create_order_gives_up_after_repeated_collisions() -> None:
    orders = FakeOrderRepository()
    orders.taken_numbers.add("ORD00000001AAAA")

    with pytest.raises(OrderNumberExhaustedError):
        _use_case(orders, numbers=["ORD00000001AAAA"] * 5).execute(_request(), WAITER)
    assert orders.orders == {}


def test_create_order_rejects_second_active_order_on_table() -> None:
    orders = FakeOrderRepository()
    orders.active_tables.add(TableId(5))

    with pytest.raises(TableHasActiveOrderError):
        _use_case(orders).execute(_request(), WAITER)


def test_status_update_moves_table_to_full_when_served() -> None:
    orders = FakeOrderRepository()
    order_id = _stored_order(orders)

    response = UpdateOrderStatus(orders).execute(order_id, "Served", WAITER)

    assert response.status == "Served"
    assert orders.table_statuses[-1] == TableStatus.FULL
    assert orders.orders[order_id].version == 2


def test_status_update_frees_table_when_cancelled() -> None:
    orders = FakeOrderRepository()
    order_id = _stored_order(orders, status=OrderStatus.PREPARING)

    UpdateOrderStatus(orders).execute(order_id, "cancelled", WAITER)

    assert orders.table_statuses[-1] == TableStatus.AVAILABLE


def test_status_update_rejects_backward_transition() -> None:
    orders = FakeOrderRepository()
    order_id = _stored_order(orders, status=OrderStatus.READY)

    with pytest.raises(DisallowedOrderTransitionError) as exc_info:
        UpdateOrderStatus(orders).execute(order_id, "Pending", WAITER)
    assert exc_info.value.details == {"from": "Ready", "to": "Pending"}


def test_status_update_rejects_unknown_status() -> None:
    orders = FakeOrderRepository()
    order_id = _stored_order(orders)

    with pytest.raises(InvalidOrderStatusError):
        UpdateOrderStatus(orders).execute(order_id, "Eaten", WAITER)


def test_status_update_requires_existing_order() -> None:
    with pytest.raises(OrderNotFoundError):
        UpdateOrderStatus(FakeOrderRepository()).execute(OrderId(42), "Served", WAITER)


def test_status_update_reports_conflict_on_stale_version() -> None:
    orders = FakeOrderRepository()
    order_id = _stored_order(orders)
    orders.fail_next_save = True

    with pytest.raises(OrderConflictError):
        UpdateOrderStatus(orders).execute(order_id, "Confirmed", WAITER)


def test_full_payment_completes_order_and_frees_table() -> None:
    orders = FakeOrderRepository()
    order_id = _stored_order(orders, status=OrderStatus.SERVED)

    response = RecordPayment(orders).execute(
        order_id,
        RecordPaymentRequest(paymentMethod="Cash", amount=Decimal("4.40")),
        CASHIER,
    )

    assert response.paymentStatus == "Paid"
    assert response.orderStatus == "Completed"
    assert response.amount.amountCents == 440
    assert orders.table_statuses[-1] == TableStatus.AVAILABLE


def test_single_accrual_never_sums_partial_payments() -> None:
    orders = FakeOrderRepository()
    order_id = _stored_order(orders, status=OrderStatus.SERVED)
    use_case = RecordPayment(orders)

    first = use_case.execute(order_id, RecordPaymentRequest(paymentMethod="Cash", amount=Decimal("2.00")), CASHIER)
    second = use_case.execute(order_id, RecordPaymentRequest(paymentMethod="Cash", amount=Decimal("2.40")), CASHIER)

    assert first.paymentStatus == "Partially Paid"
    assert second.paymentStatus == "Partially Paid"
    assert second.orderStatus == "Served"
    assert orders.table_statuses == [None, None]
    assert len(orders.payments) == 2


def test_cumulative_accrual_completes_after_partial_payments() -> None:
    orders = FakeOrderRepository()
    order_id = _stored_order(orders, status=OrderStatus.SERVED)
    use_case = RecordPayment(orders, accrual=PaymentAccrual.CUMULATIVE)

    use_case.execute(order_id, RecordPaymentRequest(paymentMethod="Card", amount=Decimal("2.00")), CASHIER)
    second = use_case.execute(order_id, RecordPaymentRequest(paymentMethod="Card", amount=Decimal("2.40")), CASHIER)

    assert second.paymentStatus == "Paid"
    assert second.orderStatus == "Completed"


def test_payment_rejected_when_order_already_paid() -> None:
    orders = FakeOrderRepository()
    order_id = _stored_order(orders, status=OrderStatus.COMPLETED, payment_status=PaymentStatus.PAID)

    with pytest.raises(OrderAlreadyPaidForError):
        RecordPayment(orders).execute(
            order_id,
            RecordPaymentRequest(paymentMethod="Cash", amount=Decimal("1.00")),
            CASHIER,
        )


def test_payment_rejected_on_cancelled_order() -> None:
    orders = FakeOrderRepository()
    order_id = _stored_order(orders, status=OrderStatus.CANCELLED)

    with pytest.raises(PaymentOnCancelledOrderError):
        RecordPayment(orders).execute(
            order_id,
            RecordPaymentRequest(paymentMethod="Cash", amount=Decimal("4.40")),
            CASHIER,
        )


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1.00"), Decimal("0.004")])
def test_payment_amount_must_be_positive(amount: Decimal) -> None:
    orders = FakeOrderRepository()
    order_id = _stored_order(orders, status=OrderStatus.SERVED)

    with pytest.raises(InvalidPaymentAmountError):
        RecordPayment(orders).execute(
            order_id,
            RecordPaymentRequest(paymentMethod="Cash", amount=amount),
            CASHIER,
        )
    assert orders.payments == []
