from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from cafepos.application.dto.requests import CreateOrderRequest
from cafepos.application.dto.responses import OrderResponse
from cafepos.application.errors import ConflictError, UnavailableError, ValidationError
from cafepos.application.mappers.order_mapper import to_order_response
from cafepos.application.metrics.order_lifecycle import (
    record_order_created,
    record_order_number_retry,
)
from cafepos.application.ports.repositories import (
    ActiveOrderExistsError,
    MenuRepository,
    OptimisticConcurrencyError,
    OrderNumberConflictError,
    OrderRepository,
    TableRepository,
)
from cafepos.application.use_cases.list_tables import TableNotFoundError
from cafepos.application.use_cases.manage_menu import MenuItemNotFoundError
from cafepos.domain.common.ids import MenuItemId, TableId
from cafepos.domain.common.money import MAX_AMOUNT_CENTS
from cafepos.domain.menu.entities import MenuItemNotOrderableError
from cafepos.domain.order.billing import GST_RATE
from cafepos.domain.order.entities import OrderLine, create_pending_order
from cafepos.domain.order.numbering import generate_order_number
from cafepos.domain.staff.entities import Staff
from cafepos.domain.table.entities import TableFullError

logger = logging.getLogger(__name__)

MAX_ORDER_NUMBER_ATTEMPTS = 5
MAX_LINE_QUANTITY = 9999


class EmptyOrderError(ValidationError):
    pass


class InvalidQuantityError(ValidationError):
    pass


class OrderTooLargeError(ValidationError):
    pass


class TableIsFullError(ValidationError):
    pass


class CurrencyMismatchError(ValidationError):
    pass


class MenuItemUnavailableError(UnavailableError):
    pass


class TableHasActiveOrderError(ConflictError):
    pass


class TableBusyError(ConflictError):
    pass


class OrderNumberExhaustedError(ConflictError):
    pass


class CreateOrder:
    def __init__(
        self,
        menu_repository: MenuRepository,
        table_repository: TableRepository,
        order_repository: OrderRepository,
        currency: str,
        tax_rate: Decimal = GST_RATE,
        number_generator: Callable[[datetime], str] = generate_order_number,
    ) -> None:
        self._menu_repository = menu_repository
        self._table_repository = table_repository
        self._order_repository = order_repository
        self._currency = currency
        self._tax_rate = tax_rate
        self._number_generator = number_generator

    def execute(self, request_dto: CreateOrderRequest, actor: Staff) -> OrderResponse:
        if not request_dto.items:
            raise EmptyOrderError("table id and at least one item are required")
        for request_line in request_dto.items:
            if not 1 <= request_line.quantity <= MAX_LINE_QUANTITY:
                raise InvalidQuantityError(
                    f"quantity for menu item {request_line.menu_item_id} must be between 1 and {MAX_LINE_QUANTITY}",
                    details={"min": 1, "max": MAX_LINE_QUANTITY},
                )

        table_id = TableId(request_dto.table_id)
        table = self._table_repository.get(table_id)
        if table is None:
            raise TableNotFoundError(f"table {table_id} not found")
        try:
            table.ensure_accepts_new_order()
        except TableFullError as exc:
            raise TableIsFullError(str(exc)) from exc

        menu_items = self._menu_repository.get_items(
            [MenuItemId(line.menu_item_id) for line in request_dto.items]
        )
        order_lines: list[OrderLine] = []
        for request_line in request_dto.items:
            menu_item = menu_items.get(MenuItemId(request_line.menu_item_id))
            if menu_item is None:
                raise MenuItemNotFoundError(f"menu item {request_line.menu_item_id} not found")
            try:
                menu_item.ensure_orderable()
            except MenuItemNotOrderableError as exc:
                raise MenuItemUnavailableError(str(exc)) from exc

            unit_price = menu_item.price_money
            if unit_price.currency != self._currency:
                raise CurrencyMismatchError(
                    f"menu item {request_line.menu_item_id} is priced in {unit_price.currency}"
                )
            order_lines.append(
                OrderLine(
                    line_id=None,
                    item_id=MenuItemId(request_line.menu_item_id),
                    name=menu_item.name,
                    quantity=request_line.quantity,
                    unit_price=unit_price,
                    line_total=unit_price.times(request_line.quantity),
                    modifiers=request_line.modifiers,
                    notes=request_line.notes,
                )
            )

        subtotal_cents = sum(line.line_total.amount_cents for line in order_lines)
        if subtotal_cents > MAX_AMOUNT_CENTS:
            raise OrderTooLargeError(
                f"order subtotal exceeds the maximum of {MAX_AMOUNT_CENTS // 100}",
                details={"subtotalCents": subtotal_cents},
            )

        now = datetime.now(timezone.utc)
        for attempt in range(1, MAX_ORDER_NUMBER_ATTEMPTS + 1):
            order = create_pending_order(
                order_number=self._number_generator(now),
                table_id=table_id,
                created_by=actor.staff_id,
                lines=order_lines,
                now=now,
                notes=request_dto.notes,
                tax_rate=self._tax_rate,
            )
            try:
                details = self._order_repository.add_for_table(
                    order,
                    expected_table_version=table.version,
                )
            except OrderNumberConflictError:
                record_order_number_retry()
                logger.warning(
                    "order_number_collision",
                    extra={"order_number": order.order_number, "attempt": attempt},
                )
                continue
            except ActiveOrderExistsError as exc:
                raise TableHasActiveOrderError(
                    f"table {table.number} already has an active order"
                ) from exc
            except OptimisticConcurrencyError as exc:
                raise TableBusyError(
                    f"table {table.number} was modified concurrently, retry the order"
                ) from exc

            record_order_created(zone=details.table_zone or "unknown")
            logger.info(
                "order_created",
                extra={
                    "order_id": details.order.order_id,
                    "order_number": details.order.order_number,
                    "table_id": table_id,
                    "total_cents": details.order.total.amount_cents,
                },
            )
            return to_order_response(details)

        raise OrderNumberExhaustedError("could not allocate a unique order number")
