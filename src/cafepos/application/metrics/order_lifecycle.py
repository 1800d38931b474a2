from __future__ import annotations

from datetime import datetime, timezone

from prometheus_client import Counter, Histogram

from cafepos.domain.order.entities import Order, OrderStatus

ORDERS_CREATED_TOTAL = Counter(
    "cafepos_orders_created_total",
    "Total number of orders created.",
    ["zone"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "cafepos_order_transition_total",
    "Total number of order lifecycle transitions.",
    ["from", "to"],
)

ORDER_NUMBER_RETRIES_TOTAL = Counter(
    "cafepos_order_number_retries_total",
    "Order number collisions that forced a retry.",
)

PAYMENTS_TOTAL = Counter(
    "cafepos_payments_total",
    "Total number of payments recorded by method and resulting payment status.",
    ["method", "payment_status"],
)

PAYMENT_AMOUNT_CENTS = Histogram(
    "cafepos_payment_amount_cents",
    "Recorded payment amounts in minor units.",
    buckets=(100, 500, 1000, 2500, 5000, 10000, 25000, 50000),
)

ORDER_TIME_TO_COMPLETE_SECONDS = Histogram(
    "cafepos_order_time_to_complete_seconds",
    "Time between order creation and completion.",
)

TABLE_DELETE_BLOCKED_TOTAL = Counter(
    "cafepos_table_delete_blocked_total",
    "Total number of table deletions blocked by active orders.",
)


def record_order_created(zone: str) -> None:
    ORDERS_CREATED_TOTAL.labels(zone=zone).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_order_number_retry() -> None:
    ORDER_NUMBER_RETRIES_TOTAL.inc()


def record_payment(method: str, order: Order, amount_cents: int) -> None:
    PAYMENTS_TOTAL.labels(method=method, payment_status=order.payment_status.value).inc()
    PAYMENT_AMOUNT_CENTS.observe(amount_cents)


def record_time_to_complete(order: Order, now: datetime | None = None) -> None:
    current = now or datetime.now(timezone.utc)
    ORDER_TIME_TO_COMPLETE_SECONDS.observe(max((current - order.created_at).total_seconds(), 0.0))


def record_table_delete_blocked() -> None:
    TABLE_DELETE_BLOCKED_TOTAL.inc()
