from __future__ import annotations

import logging
from datetime import datetime, timezone

from cafepos.application.dto.responses import OrderResponse
from cafepos.application.errors import ConflictError, InvalidTransitionError
from cafepos.application.mappers.order_mapper import to_order_response
from cafepos.application.metrics.order_lifecycle import record_time_to_complete, record_transition
from cafepos.application.ports.repositories import OptimisticConcurrencyError, OrderRepository
from cafepos.application.use_cases.get_order import OrderNotFoundError
from cafepos.domain.common.ids import OrderId
from cafepos.domain.order.entities import (
    OrderStatus,
    OrderTransitionError,
    UnknownOrderStatusError,
    parse_order_status,
)
from cafepos.domain.staff.entities import Staff
from cafepos.domain.table.entities import table_status_for_order

logger = logging.getLogger(__name__)


class InvalidOrderStatusError(InvalidTransitionError):
    pass


class DisallowedOrderTransitionError(InvalidTransitionError):
    pass


class OrderConflictError(ConflictError):
    pass


class UpdateOrderStatus:
    def __init__(self, order_repository: OrderRepository) -> None:
        self._order_repository = order_repository

    def execute(self, order_id: OrderId, status: str, actor: Staff) -> OrderResponse:
        try:
            target = parse_order_status(status)
        except UnknownOrderStatusError as exc:
            raise InvalidOrderStatusError(
                str(exc),
                details={"allowed": [value.value for value in OrderStatus]},
            ) from exc

        details = self._order_repository.get(order_id)
        if details is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        order = details.order

        now = datetime.now(timezone.utc)
        try:
            updated = order.transition_to(target, now)
        except OrderTransitionError as exc:
            raise DisallowedOrderTransitionError(
                str(exc),
                details={"from": order.status.value, "to": target.value},
            ) from exc

        try:
            persisted = self._order_repository.save_transition(
                updated,
                table_status=table_status_for_order(target),
                expected_version=order.version,
            )
        except OptimisticConcurrencyError:
            current = self._order_repository.get(order_id)
            if current is None:
                raise OrderNotFoundError(f"order {order_id} not found")
            if current.order.status == target:
                return to_order_response(current)
            raise OrderConflictError(f"order {order_id} status update conflict")

        if order.status != target:
            record_transition(from_status=order.status, to_status=target)
            if target == OrderStatus.COMPLETED:
                record_time_to_complete(persisted.order, now=now)
        logger.info(
            "order_status_updated",
            extra={
                "order_id": order_id,
                "table_id": order.table_id,
                "order_status": target.value,
                "previous_status": order.status.value,
                "staff_id": actor.staff_id,
            },
        )
        return to_order_response(persisted)
