from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal

from cafepos.application.dto.requests import RecordPaymentRequest
from cafepos.application.dto.responses import PaymentResponse
from cafepos.application.errors import AlreadyPaidError, ConflictError, ValidationError
from cafepos.application.mappers.order_mapper import to_payment_response
from cafepos.application.metrics.order_lifecycle import record_payment, record_time_to_complete
from cafepos.application.ports.repositories import OptimisticConcurrencyError, OrderRepository
from cafepos.application.use_cases.get_order import OrderNotFoundError
from cafepos.domain.common.ids import OrderId
from cafepos.domain.common.money import Money
from cafepos.domain.order.billing import PaymentAccrual
from cafepos.domain.order.entities import OrderAlreadyPaidError, OrderCancelledError, OrderStatus
from cafepos.domain.payment.entities import completed_payment
from cafepos.domain.staff.entities import Staff
from cafepos.domain.table.entities import table_status_for_order

logger = logging.getLogger(__name__)


class InvalidPaymentAmountError(ValidationError):
    pass


class OrderAlreadyPaidForError(AlreadyPaidError):
    pass


class PaymentOnCancelledOrderError(ConflictError):
    pass


class PaymentConflictError(ConflictError):
    pass


class RecordPayment:
    def __init__(
        self,
        order_repository: OrderRepository,
        accrual: PaymentAccrual = PaymentAccrual.SINGLE,
    ) -> None:
        self._order_repository = order_repository
        self._accrual = accrual

    def execute(
        self,
        order_id: OrderId,
        request_dto: RecordPaymentRequest,
        actor: Staff,
    ) -> PaymentResponse:
        details = self._order_repository.get(order_id)
        if details is None:
            raise OrderNotFoundError(f"order {order_id} not found")
        order = details.order

        try:
            order.ensure_payable()
        except OrderAlreadyPaidError as exc:
            raise OrderAlreadyPaidForError(str(exc)) from exc
        except OrderCancelledError as exc:
            raise PaymentOnCancelledOrderError(str(exc)) from exc

        amount = self._parse_amount(request_dto.amount, order.total.currency)
        method = request_dto.payment_method.strip()
        if not method:
            raise ValidationError("payment method is required")

        if self._accrual == PaymentAccrual.CUMULATIVE:
            paid_before = Money(self._order_repository.paid_cents(order_id), order.total.currency)
        else:
            paid_before = Money.zero(order.total.currency)

        now = datetime.now(timezone.utc)
        updated = order.apply_payment(
            amount=amount,
            method=method,
            paid_before=paid_before,
            now=now,
            accrual=self._accrual,
        )
        table_status = None
        if updated.status != order.status:
            table_status = table_status_for_order(updated.status)

        payment = completed_payment(
            order_id=order_id,
            amount=amount,
            method=method,
            now=now,
            external_txn_id=request_dto.transaction_id,
        )
        try:
            persisted = self._order_repository.add_payment(
                updated,
                payment,
                table_status=table_status,
                expected_version=order.version,
            )
        except OptimisticConcurrencyError as exc:
            raise PaymentConflictError(
                f"order {order_id} was modified concurrently, retry the payment"
            ) from exc

        record_payment(method=method, order=updated, amount_cents=amount.amount_cents)
        if updated.status == OrderStatus.COMPLETED and order.status != OrderStatus.COMPLETED:
            record_time_to_complete(updated, now=now)
        logger.info(
            "payment_recorded",
            extra={
                "order_id": order_id,
                "table_id": order.table_id,
                "payment_status": updated.payment_status.value,
                "order_status": updated.status.value,
                "amount_cents": amount.amount_cents,
                "staff_id": actor.staff_id,
            },
        )
        return to_payment_response(persisted, updated)

    @staticmethod
    def _parse_amount(value: Decimal, currency: str) -> Money:
        if value <= 0:
            raise InvalidPaymentAmountError("payment amount must be greater than zero")
        try:
            amount = Money.from_decimal(value, currency)
        except ValueError as exc:
            raise InvalidPaymentAmountError(str(exc)) from exc
        if amount.amount_cents <= 0:
            raise InvalidPaymentAmountError("payment amount must be at least one cent")
        return amount
