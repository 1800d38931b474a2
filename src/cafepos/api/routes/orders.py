from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import Engine

from cafepos.api.dependencies import (
    current_staff,
    get_db_engine,
    gst_rate,
    payment_accrual,
    pos_currency,
    require_roles,
)
from cafepos.application.dto.requests import (
    CreateOrderRequest,
    RecordPaymentRequest,
    UpdateOrderStatusRequest,
)
from cafepos.application.dto.responses import (
    OrderListResponse,
    OrderResponse,
    OrderStatsSummaryResponse,
    PaymentListResponse,
    PaymentResponse,
)
from cafepos.application.use_cases.create_order import CreateOrder
from cafepos.application.use_cases.get_order import GetOrder, ListOrderPayments, ListOrders
from cafepos.application.use_cases.record_payment import RecordPayment
from cafepos.application.use_cases.reports import GetOrderStatsSummary
from cafepos.application.use_cases.update_order_status import UpdateOrderStatus
from cafepos.domain.common.ids import OrderId
from cafepos.domain.staff.entities import Staff, StaffRole
from cafepos.infrastructure.db.repositories.menu_repo import SqlAlchemyMenuRepository
from cafepos.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository
from cafepos.infrastructure.db.repositories.report_repo import SqlAlchemyReportRepository
from cafepos.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository

router = APIRouter(prefix="/orders", tags=["orders"])

_order_takers = require_roles(StaffRole.WAITER, StaffRole.ADMIN)
_cashiers = require_roles(StaffRole.CASHIER, StaffRole.ADMIN)


def _create_order_use_case(engine: Engine) -> CreateOrder:
    return CreateOrder(
        menu_repository=SqlAlchemyMenuRepository(engine),
        table_repository=SqlAlchemyTableRepository(engine),
        order_repository=SqlAlchemyOrderRepository(engine),
        currency=pos_currency(),
        tax_rate=gst_rate(),
    )


def _record_payment_use_case(engine: Engine) -> RecordPayment:
    return RecordPayment(
        order_repository=SqlAlchemyOrderRepository(engine),
        accrual=payment_accrual(),
    )


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    request_dto: CreateOrderRequest,
    engine: Engine = Depends(get_db_engine),
    staff: Staff = Depends(_order_takers),
) -> OrderResponse:
    return _create_order_use_case(engine).execute(request_dto, actor=staff)


@router.get("", response_model=OrderListResponse)
def list_orders(
    order_status: str | None = Query(default=None, alias="status"),
    table_id: int | None = Query(default=None, alias="tableId"),
    created_on: str | None = Query(default=None, alias="date"),
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(current_staff),
) -> OrderListResponse:
    return ListOrders(order_repository=SqlAlchemyOrderRepository(engine)).execute(
        status=order_status,
        table_id=table_id,
        created_on=created_on,
    )


@router.get("/stats/summary", response_model=OrderStatsSummaryResponse)
def order_stats_summary(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(current_staff),
) -> OrderStatsSummaryResponse:
    use_case = GetOrderStatsSummary(
        report_repository=SqlAlchemyReportRepository(engine),
        currency=pos_currency(),
    )
    return use_case.execute(start=start_date, end=end_date)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: int,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(current_staff),
) -> OrderResponse:
    return GetOrder(order_repository=SqlAlchemyOrderRepository(engine)).execute(OrderId(order_id))


@router.get("/{order_id}/payments", response_model=PaymentListResponse)
def list_order_payments(
    order_id: int,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(current_staff),
) -> PaymentListResponse:
    use_case = ListOrderPayments(order_repository=SqlAlchemyOrderRepository(engine))
    return use_case.execute(OrderId(order_id))


@router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    request_dto: UpdateOrderStatusRequest,
    engine: Engine = Depends(get_db_engine),
    staff: Staff = Depends(_order_takers),
) -> OrderResponse:
    use_case = UpdateOrderStatus(order_repository=SqlAlchemyOrderRepository(engine))
    return use_case.execute(OrderId(order_id), request_dto.status, actor=staff)


@router.post("/{order_id}/payment", response_model=PaymentResponse)
def record_payment(
    order_id: int,
    request_dto: RecordPaymentRequest,
    engine: Engine = Depends(get_db_engine),
    staff: Staff = Depends(_cashiers),
) -> PaymentResponse:
    return _record_payment_use_case(engine).execute(OrderId(order_id), request_dto, actor=staff)
