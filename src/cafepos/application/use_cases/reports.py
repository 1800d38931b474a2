from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Callable

from cafepos.application.dto.responses import (
    ActivityResponse,
    CountResponse,
    DailyRevenueResponse,
    DashboardResponse,
    EntityCountsResponse,
    FinancialReportResponse,
    GroupSalesResponse,
    ItemSalesResponse,
    OrderStatsSummaryResponse,
    PaymentMethodTotalResponse,
    RecentOrderResponse,
    SalesReportResponse,
    SystemStatsResponse,
)
from cafepos.application.errors import ValidationError
from cafepos.application.mappers.money_mapper import cents_response, to_money_response
from cafepos.application.ports.reports import (
    ActivityEntry,
    DateRange,
    GroupSales,
    ItemSales,
    ReportRepository,
)
from cafepos.domain.common.money import Money

ACTIVITY_WINDOW = timedelta(hours=24)
ACTIVITY_LIMIT = 20


class InvalidReportPeriodError(ValidationError):
    pass


def parse_period(start: str | None, end: str | None) -> DateRange | None:
    """Build an inclusive date range from ISO query values; both bounds or neither."""
    start = (start or "").strip()
    end = (end or "").strip()
    if not start and not end:
        return None
    if not start or not end:
        raise InvalidReportPeriodError("start date and end date must be given together")
    try:
        return DateRange(start=date.fromisoformat(start), end=date.fromisoformat(end))
    except ValueError as exc:
        raise InvalidReportPeriodError(str(exc)) from exc


def require_period(start: str | None, end: str | None) -> DateRange:
    period = parse_period(start, end)
    if period is None:
        raise InvalidReportPeriodError("start date and end date are required")
    return period


def _item_sales(rows: list[ItemSales], currency: str) -> list[ItemSalesResponse]:
    return [
        ItemSalesResponse(
            name=row.name,
            quantity=row.quantity,
            revenue=cents_response(row.revenue_cents, currency),
            averagePrice=cents_response(row.average_price_cents, currency)
            if row.average_price_cents
            else None,
        )
        for row in rows
    ]


def _group_sales(rows: list[GroupSales], currency: str) -> list[GroupSalesResponse]:
    return [
        GroupSalesResponse(
            label=row.label,
            secondaryLabel=row.secondary_label,
            orderCount=row.order_count,
            quantity=row.quantity,
            revenue=cents_response(row.revenue_cents, currency),
            averageOrderValue=cents_response(row.average_order_cents, currency),
        )
        for row in rows
    ]


class GetOrderStatsSummary:
    def __init__(self, report_repository: ReportRepository, currency: str) -> None:
        self._report_repository = report_repository
        self._currency = currency

    def execute(self, start: str | None = None, end: str | None = None) -> OrderStatsSummaryResponse:
        summary = self._report_repository.order_summary(parse_period(start, end))
        return OrderStatsSummaryResponse(
            totalOrders=summary.total_orders,
            totalRevenue=cents_response(summary.revenue_cents, self._currency),
            ordersByStatus=[CountResponse(key=row.key, count=row.count) for row in summary.by_status],
            topItems=_item_sales(summary.top_items, self._currency),
        )


class GetFinancialReport:
    def __init__(self, report_repository: ReportRepository, currency: str) -> None:
        self._report_repository = report_repository
        self._currency = currency

    def execute(self, start: str | None, end: str | None) -> FinancialReportResponse:
        period = require_period(start, end)
        report = self._report_repository.financial_report(period)
        currency = self._currency
        return FinancialReportResponse(
            totalRevenue=cents_response(report.revenue_cents, currency),
            totalSubtotal=cents_response(report.subtotal_cents, currency),
            totalTax=cents_response(report.tax_cents, currency),
            paidOrders=report.paid_orders,
            averageOrderValue=cents_response(report.average_order_cents, currency),
            byPaymentMethod=[
                PaymentMethodTotalResponse(
                    paymentMethod=row.method,
                    total=cents_response(row.amount_cents, currency),
                    transactionCount=row.transactions,
                )
                for row in report.by_payment_method
            ],
            dailyBreakdown=[
                DailyRevenueResponse(
                    day=row.day,
                    revenue=cents_response(row.revenue_cents, currency),
                    orders=row.orders,
                    averageOrderValue=cents_response(row.average_order_cents, currency),
                )
                for row in report.daily
            ],
            topItems=_item_sales(report.top_items, currency),
        )


class GetSalesReport:
    def __init__(self, report_repository: ReportRepository, currency: str) -> None:
        self._report_repository = report_repository
        self._currency = currency

    def execute(self, start: str | None, end: str | None) -> SalesReportResponse:
        period = require_period(start, end)
        report = self._report_repository.sales_report(period)
        return SalesReportResponse(
            byCategory=_group_sales(report.by_category, self._currency),
            byTable=_group_sales(report.by_table, self._currency),
            byZone=_group_sales(report.by_zone, self._currency),
            byEmployee=_group_sales(report.by_employee, self._currency),
        )


class GetDashboard:
    def __init__(self, report_repository: ReportRepository, currency: str) -> None:
        self._report_repository = report_repository
        self._currency = currency

    def execute(self, start: str | None = None, end: str | None = None) -> DashboardResponse:
        data = self._report_repository.dashboard(parse_period(start, end))
        currency = self._currency
        return DashboardResponse(
            totalRevenue=cents_response(data.revenue_cents, currency),
            totalOrders=data.total_orders,
            pendingOrders=data.pending_orders,
            completedOrders=data.completed_orders,
            activeStaff=data.active_staff,
            totalTables=data.total_tables,
            availableTables=data.available_tables,
            recentOrders=[
                RecentOrderResponse(
                    orderId=row.order_id,
                    orderNumber=row.order_number,
                    status=row.status,
                    paymentStatus=row.payment_status,
                    total=cents_response(row.total_cents, currency),
                    tableNumber=row.table_number,
                    createdByName=row.created_by_name,
                    createdAt=row.created_at,
                )
                for row in data.recent_orders
            ],
            topItems=_item_sales(data.top_items, currency),
            ordersByStatus=[CountResponse(key=row.key, count=row.count) for row in data.by_status],
        )


class GetSystemStats:
    """Entity counts plus order and payment activity from the last day."""

    def __init__(
        self,
        report_repository: ReportRepository,
        currency: str,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        window: timedelta = ACTIVITY_WINDOW,
        limit: int = ACTIVITY_LIMIT,
    ) -> None:
        self._report_repository = report_repository
        self._currency = currency
        self._now = now
        self._window = window
        self._limit = limit

    def execute(self) -> SystemStatsResponse:
        stats = self._report_repository.system_stats(since=self._now() - self._window, limit=self._limit)
        counts = stats.counts
        return SystemStatsResponse(
            database=EntityCountsResponse(
                staff=counts.staff,
                tables=counts.tables,
                menuItems=counts.menu_items,
                orders=counts.orders,
                payments=counts.payments,
            ),
            recentActivity=[self._activity(entry) for entry in stats.recent_activity],
        )

    def _activity(self, entry: ActivityEntry) -> ActivityResponse:
        if entry.kind == "payment":
            amount = Money(amount_cents=entry.amount_cents or 0, currency=entry.currency or self._currency)
            return ActivityResponse(
                type=entry.kind,
                identifier=entry.identifier,
                orderNumber=entry.order_number,
                timestamp=entry.occurred_at,
                description=f"Payment of {amount.currency} {amount.to_decimal()} processed",
                amount=to_money_response(amount),
            )
        return ActivityResponse(
            type=entry.kind,
            identifier=entry.identifier,
            orderNumber=entry.order_number,
            timestamp=entry.occurred_at,
            description=f"Order created by {entry.staff_name or 'unknown staff'}",
        )
