from __future__ import annotations

from datetime import date

from cafepos.application.dto.responses import OrderListResponse, OrderResponse, PaymentListResponse
from cafepos.application.errors import NotFoundError, ValidationError
from cafepos.application.mappers.order_mapper import to_order_response, to_payment_response
from cafepos.application.ports.repositories import OrderFilters, OrderRepository
from cafepos.domain.common.ids import OrderId, TableId
from cafepos.domain.order.entities import OrderStatus, UnknownOrderStatusError, parse_order_status


class OrderNotFoundError(NotFoundError):
    pass


class InvalidOrderFilterError(ValidationError):
    pass


class GetOrder:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId) -> OrderResponse:
        details = self._order_repository.get(order_id)
        if details is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        return to_order_response(details)


class ListOrders:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(
        self,
        *,
        status: str | None = None,
        table_id: int | None = None,
        created_on: str | None = None,
    ) -> OrderListResponse:
        filters = OrderFilters(
            status=self._parse_status(status),
            table_id=TableId(table_id) if table_id is not None else None,
            created_on=self._parse_date(created_on),
        )
        orders = self._order_repository.list_orders(filters)
        return OrderListResponse(orders=[to_order_response(details) for details in orders])

    @staticmethod
    def _parse_status(value: str | None) -> OrderStatus | None:
        if value is None or not value.strip():
            return None
        try:
            return parse_order_status(value)
        except UnknownOrderStatusError as exc:
            raise InvalidOrderFilterError(str(exc)) from exc

    @staticmethod
    def _parse_date(value: str | None) -> date | None:
        if value is None or not value.strip():
            return None
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise InvalidOrderFilterError(f"invalid date filter: {value}") from exc


class ListOrderPayments:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId) -> PaymentListResponse:
        details = self._order_repository.get(order_id)
        if details is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        payments = self._order_repository.list_payments(order_id)
        return PaymentListResponse(
            payments=[to_payment_response(payment, details.order) for payment in payments]
        )
