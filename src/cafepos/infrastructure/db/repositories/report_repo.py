from __future__ import annotations

from datetime import datetime

from sqlalchemy import Engine, Select, distinct, func, select
from sqlalchemy.orm import Session

from cafepos.application.ports.reports import (
    ActivityEntry,
    DailyRevenue,
    DashboardData,
    DateRange,
    EntityCounts,
    FinancialReport,
    GroupSales,
    ItemSales,
    OrderStatsSummary,
    PaymentMethodTotal,
    RecentOrder,
    ReportRepository,
    SalesReport,
    SystemStats,
)
from cafepos.application.ports.repositories import CountByKey
from cafepos.domain.order.billing import PaymentStatus
from cafepos.domain.order.entities import OrderStatus
from cafepos.domain.payment.entities import PaymentRecordStatus
from cafepos.domain.staff.entities import StaffStatus
from cafepos.domain.table.entities import TableStatus
from cafepos.infrastructure.db.models.menu import CategoryModel, MenuItemModel
from cafepos.infrastructure.db.models.order import OrderLineModel, OrderModel, PaymentModel
from cafepos.infrastructure.db.models.staff import StaffModel
from cafepos.infrastructure.db.models.table import TableModel
from cafepos.infrastructure.db.repositories.common import as_date, as_utc, average_cents, day_bounds
from cafepos.infrastructure.db.session import get_engine

_PAID = PaymentStatus.PAID.value
_PENDING_STATUS_VALUES = [
    OrderStatus.PENDING.value,
    OrderStatus.CONFIRMED.value,
    OrderStatus.PREPARING.value,
]


def _within(statement: Select, period: DateRange | None) -> Select:
    if period is None:
        return statement
    lower, upper = day_bounds(period.start, period.end)
    return statement.where(OrderModel.created_at >= lower, OrderModel.created_at < upper)


class SqlAlchemyReportRepository(ReportRepository):
    """Read-only aggregates over persisted orders. Money sums are in cents."""

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def order_summary(self, period: DateRange | None) -> OrderStatsSummary:
        with Session(self._engine) as session:
            total_orders = session.execute(
                _within(select(func.count(OrderModel.id)), period)
            ).scalar_one()
            revenue = session.execute(
                _within(
                    select(func.coalesce(func.sum(OrderModel.total_cents), 0)).where(
                        OrderModel.payment_status == _PAID
                    ),
                    period,
                )
            ).scalar_one()
            by_status = self._count_by_status(session, period)
            top_items = self._top_items(session, period, limit=10, by_revenue=False)

        return OrderStatsSummary(
            total_orders=int(total_orders),
            revenue_cents=int(revenue),
            by_status=by_status,
            top_items=top_items,
        )

    def financial_report(self, period: DateRange) -> FinancialReport:
        with Session(self._engine) as session:
            totals = session.execute(
                _within(
                    select(
                        func.coalesce(func.sum(OrderModel.total_cents), 0),
                        func.coalesce(func.sum(OrderModel.subtotal_cents), 0),
                        func.coalesce(func.sum(OrderModel.tax_cents), 0),
                        func.count(OrderModel.id),
                    ).where(OrderModel.payment_status == _PAID),
                    period,
                )
            ).one()
            revenue, subtotal, tax, paid_orders = (int(value) for value in totals)

            by_method = [
                PaymentMethodTotal(method=row[0], amount_cents=int(row[1]), transactions=int(row[2]))
                for row in session.execute(
                    _within(
                        select(
                            PaymentModel.method,
                            func.sum(PaymentModel.amount_cents),
                            func.count(PaymentModel.id),
                        )
                        .join(OrderModel, PaymentModel.order_id == OrderModel.id)
                        .where(PaymentModel.status == PaymentRecordStatus.COMPLETED.value)
                        .group_by(PaymentModel.method)
                        .order_by(func.sum(PaymentModel.amount_cents).desc()),
                        period,
                    )
                )
            ]

            day = func.date(OrderModel.created_at)
            daily = []
            for row in session.execute(
                _within(
                    select(day, func.sum(OrderModel.total_cents), func.count(OrderModel.id))
                    .where(OrderModel.payment_status == _PAID)
                    .group_by(day)
                    .order_by(day),
                    period,
                )
            ):
                day_revenue, day_orders = int(row[1] or 0), int(row[2])
                daily.append(
                    DailyRevenue(
                        day=as_date(row[0]),
                        revenue_cents=day_revenue,
                        orders=day_orders,
                        average_order_cents=average_cents(day_revenue, day_orders),
                    )
                )

            top_items = self._top_items(session, period, limit=10, by_revenue=True)

        return FinancialReport(
            revenue_cents=revenue,
            subtotal_cents=subtotal,
            tax_cents=tax,
            paid_orders=paid_orders,
            average_order_cents=average_cents(revenue, paid_orders),
            by_payment_method=by_method,
            daily=daily,
            top_items=top_items,
        )

    def sales_report(self, period: DateRange) -> SalesReport:
        with Session(self._engine) as session:
            by_category = [
                GroupSales(
                    label=row[0],
                    order_count=int(row[1]),
                    quantity=int(row[2] or 0),
                    revenue_cents=int(row[3] or 0),
                    average_order_cents=average_cents(int(row[3] or 0), int(row[1])),
                )
                for row in session.execute(
                    _within(
                        select(
                            CategoryModel.name,
                            func.count(distinct(OrderModel.id)),
                            func.sum(OrderLineModel.quantity),
                            func.sum(OrderLineModel.line_total_cents),
                        )
                        .select_from(OrderLineModel)
                        .join(OrderModel, OrderLineModel.order_id == OrderModel.id)
                        .join(MenuItemModel, OrderLineModel.menu_item_id == MenuItemModel.id)
                        .join(CategoryModel, MenuItemModel.category_id == CategoryModel.id)
                        .where(OrderModel.payment_status == _PAID)
                        .group_by(CategoryModel.id, CategoryModel.name)
                        .order_by(func.sum(OrderLineModel.line_total_cents).desc()),
                        period,
                    )
                )
            ]

            by_table = [
                _order_group(row[0], int(row[2]), int(row[3] or 0), secondary=row[1])
                for row in session.execute(
                    _within(
                        select(
                            TableModel.number,
                            TableModel.zone,
                            func.count(OrderModel.id),
                            func.sum(OrderModel.total_cents),
                        )
                        .select_from(OrderModel)
                        .join(TableModel, OrderModel.table_id == TableModel.id)
                        .where(OrderModel.payment_status == _PAID)
                        .group_by(TableModel.id, TableModel.number, TableModel.zone)
                        .order_by(func.sum(OrderModel.total_cents).desc()),
                        period,
                    )
                )
            ]

            by_zone = [
                _order_group(row[0], int(row[1]), int(row[2] or 0))
                for row in session.execute(
                    _within(
                        select(
                            TableModel.zone,
                            func.count(OrderModel.id),
                            func.sum(OrderModel.total_cents),
                        )
                        .select_from(OrderModel)
                        .join(TableModel, OrderModel.table_id == TableModel.id)
                        .where(OrderModel.payment_status == _PAID)
                        .group_by(TableModel.zone)
                        .order_by(func.sum(OrderModel.total_cents).desc()),
                        period,
                    )
                )
            ]

            by_employee = [
                _order_group(row[0], int(row[2]), int(row[3] or 0), secondary=row[1])
                for row in session.execute(
                    _within(
                        select(
                            StaffModel.name,
                            StaffModel.employee_id,
                            func.count(OrderModel.id),
                            func.sum(OrderModel.total_cents),
                        )
                        .select_from(OrderModel)
                        .join(StaffModel, OrderModel.created_by == StaffModel.id)
                        .where(OrderModel.payment_status == _PAID)
                        .group_by(StaffModel.id, StaffModel.name, StaffModel.employee_id)
                        .order_by(func.sum(OrderModel.total_cents).desc()),
                        period,
                    )
                )
            ]

        return SalesReport(
            by_category=by_category,
            by_table=by_table,
            by_zone=by_zone,
            by_employee=by_employee,
        )

    def dashboard(self, period: DateRange | None) -> DashboardData:
        with Session(self._engine) as session:
            revenue = session.execute(
                _within(
                    select(func.coalesce(func.sum(OrderModel.total_cents), 0)).where(
                        OrderModel.payment_status == _PAID
                    ),
                    period,
                )
            ).scalar_one()
            total_orders = session.execute(
                _within(select(func.count(OrderModel.id)), period)
            ).scalar_one()
            pending_orders = session.execute(
                _within(
                    select(func.count(OrderModel.id)).where(
                        OrderModel.status.in_(_PENDING_STATUS_VALUES)
                    ),
                    period,
                )
            ).scalar_one()
            completed_orders = session.execute(
                _within(
                    select(func.count(OrderModel.id)).where(
                        OrderModel.status == OrderStatus.COMPLETED.value
                    ),
                    period,
                )
            ).scalar_one()
            active_staff = session.execute(
                select(func.count(StaffModel.id)).where(StaffModel.status == StaffStatus.ACTIVE.value)
            ).scalar_one()
            total_tables = session.execute(select(func.count(TableModel.id))).scalar_one()
            available_tables = session.execute(
                select(func.count(TableModel.id)).where(TableModel.status == TableStatus.AVAILABLE.value)
            ).scalar_one()

            recent_orders = [
                RecentOrder(
                    order_id=int(row.id),
                    order_number=row.order_number,
                    status=row.status,
                    payment_status=row.payment_status,
                    total_cents=int(row.total_cents),
                    table_number=row.number,
                    created_by_name=row.name or "",
                    created_at=as_utc(row.created_at),
                )
                for row in session.execute(
                    _within(
                        select(
                            OrderModel.id,
                            OrderModel.order_number,
                            OrderModel.status,
                            OrderModel.payment_status,
                            OrderModel.total_cents,
                            OrderModel.created_at,
                            TableModel.number,
                            StaffModel.name,
                        )
                        .outerjoin(TableModel, OrderModel.table_id == TableModel.id)
                        .outerjoin(StaffModel, OrderModel.created_by == StaffModel.id),
                        period,
                    )
                    .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
                    .limit(10)
                )
            ]

            top_items = self._top_items(session, period, limit=5, by_revenue=False)
            by_status = self._count_by_status(session, period)

        return DashboardData(
            revenue_cents=int(revenue),
            total_orders=int(total_orders),
            pending_orders=int(pending_orders),
            completed_orders=int(completed_orders),
            active_staff=int(active_staff),
            total_tables=int(total_tables),
            available_tables=int(available_tables),
            recent_orders=recent_orders,
            top_items=top_items,
            by_status=by_status,
        )

    def system_stats(self, since: datetime, limit: int) -> SystemStats:
        with Session(self._engine) as session:
            counts = EntityCounts(
                staff=session.execute(select(func.count(StaffModel.id))).scalar_one(),
                tables=session.execute(select(func.count(TableModel.id))).scalar_one(),
                menu_items=session.execute(select(func.count(MenuItemModel.id))).scalar_one(),
                orders=session.execute(select(func.count(OrderModel.id))).scalar_one(),
                payments=session.execute(select(func.count(PaymentModel.id))).scalar_one(),
            )

            activity = [
                ActivityEntry(
                    kind="order",
                    identifier=row.order_number,
                    order_number=row.order_number,
                    occurred_at=as_utc(row.created_at),
                    staff_name=row.name,
                )
                for row in session.execute(
                    select(OrderModel.order_number, OrderModel.created_at, StaffModel.name)
                    .outerjoin(StaffModel, OrderModel.created_by == StaffModel.id)
                    .where(OrderModel.created_at >= since)
                    .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
                    .limit(limit)
                )
            ]
            activity.extend(
                ActivityEntry(
                    kind="payment",
                    identifier=row.external_txn_id or f"PAY{row.id}",
                    order_number=row.order_number,
                    occurred_at=as_utc(row.created_at),
                    amount_cents=int(row.amount_cents),
                    currency=row.currency,
                )
                for row in session.execute(
                    select(
                        PaymentModel.id,
                        PaymentModel.external_txn_id,
                        PaymentModel.amount_cents,
                        PaymentModel.currency,
                        PaymentModel.created_at,
                        OrderModel.order_number,
                    )
                    .join(OrderModel, PaymentModel.order_id == OrderModel.id)
                    .where(PaymentModel.created_at >= since)
                    .order_by(PaymentModel.created_at.desc(), PaymentModel.id.desc())
                    .limit(limit)
                )
            )

        activity.sort(key=lambda entry: entry.occurred_at, reverse=True)
        return SystemStats(counts=counts, recent_activity=activity[:limit])

    def _count_by_status(self, session: Session, period: DateRange | None) -> list[CountByKey]:
        statement = _within(
            select(OrderModel.status, func.count(OrderModel.id))
            .group_by(OrderModel.status)
            .order_by(OrderModel.status),
            period,
        )
        return [CountByKey(key=row[0], count=int(row[1])) for row in session.execute(statement)]

    def _top_items(
        self,
        session: Session,
        period: DateRange | None,
        limit: int,
        by_revenue: bool,
    ) -> list[ItemSales]:
        quantity = func.sum(OrderLineModel.quantity)
        revenue = func.sum(OrderLineModel.line_total_cents)
        statement = (
            _within(
                select(OrderLineModel.name, quantity, revenue)
                .join(OrderModel, OrderLineModel.order_id == OrderModel.id)
                .where(OrderModel.payment_status == _PAID),
                period,
            )
            .group_by(OrderLineModel.name)
            .order_by((revenue if by_revenue else quantity).desc(), OrderLineModel.name)
            .limit(limit)
        )
        items = []
        for row in session.execute(statement):
            item_quantity, item_revenue = int(row[1] or 0), int(row[2] or 0)
            items.append(
                ItemSales(
                    name=row[0],
                    quantity=item_quantity,
                    revenue_cents=item_revenue,
                    average_price_cents=average_cents(item_revenue, item_quantity) if by_revenue else 0,
                )
            )
        return items


def _order_group(label: str, order_count: int, revenue_cents: int, secondary: str | None = None) -> GroupSales:
    return GroupSales(
        label=label,
        order_count=order_count,
        revenue_cents=revenue_cents,
        average_order_cents=average_cents(revenue_cents, order_count),
        secondary_label=secondary,
    )
