from __future__ import annotations

from cafepos.application.dto.responses import (
    OrderLineResponse,
    OrderResponse,
    PaymentResponse,
)
from cafepos.application.mappers.money_mapper import cents_response, to_money_response
from cafepos.application.ports.repositories import OrderDetails
from cafepos.domain.order.entities import Order
from cafepos.domain.payment.entities import PaymentRecord


def to_order_response(details: OrderDetails) -> OrderResponse:
    order = details.order
    if order.order_id is None:
        raise ValueError("order must be persisted before it is mapped")
    return OrderResponse(
        orderId=int(order.order_id),
        orderNumber=order.order_number,
        tableId=int(order.table_id) if order.table_id is not None else None,
        tableNumber=details.table_number,
        tableZone=details.table_zone,
        status=order.status.value,
        paymentStatus=order.payment_status.value,
        paymentMethod=order.payment_method,
        subtotal=to_money_response(order.subtotal),
        tax=to_money_response(order.tax),
        total=to_money_response(order.total),
        amountPaid=cents_response(details.paid_cents, order.total.currency),
        notes=order.notes,
        createdById=int(order.created_by),
        createdByName=details.created_by_name,
        createdAt=order.created_at,
        updatedAt=order.updated_at,
        lines=[
            OrderLineResponse(
                lineId=int(line.line_id) if line.line_id is not None else None,
                menuItemId=int(line.item_id),
                name=line.name,
                category=details.line_categories.get(line.item_id),
                quantity=line.quantity,
                unitPrice=to_money_response(line.unit_price),
                lineTotal=to_money_response(line.line_total),
                modifiers=line.modifiers,
                notes=line.notes,
            )
            for line in order.lines
        ],
    )


def to_payment_response(payment: PaymentRecord, order: Order) -> PaymentResponse:
    return PaymentResponse(
        paymentId=int(payment.payment_id) if payment.payment_id is not None else None,
        orderId=int(payment.order_id),
        paymentStatus=order.payment_status.value,
        orderStatus=order.status.value,
        amount=to_money_response(payment.amount),
        paymentMethod=payment.method,
        transactionId=payment.external_txn_id,
        createdAt=payment.created_at,
    )
