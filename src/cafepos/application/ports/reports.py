from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Protocol

from cafepos.application.ports.repositories import CountByKey


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("end date must not be before start date")


@dataclass(frozen=True)
class ItemSales:
    name: str
    quantity: int
    revenue_cents: int
    average_price_cents: int = 0


@dataclass(frozen=True)
class OrderStatsSummary:
    total_orders: int
    revenue_cents: int
    by_status: list[CountByKey] = field(default_factory=list)
    top_items: list[ItemSales] = field(default_factory=list)


@dataclass(frozen=True)
class PaymentMethodTotal:
    method: str
    amount_cents: int
    transactions: int


@dataclass(frozen=True)
class DailyRevenue:
    day: date
    revenue_cents: int
    orders: int
    average_order_cents: int


@dataclass(frozen=True)
class FinancialReport:
    revenue_cents: int
    subtotal_cents: int
    tax_cents: int
    paid_orders: int
    average_order_cents: int
    by_payment_method: list[PaymentMethodTotal] = field(default_factory=list)
    daily: list[DailyRevenue] = field(default_factory=list)
    top_items: list[ItemSales] = field(default_factory=list)


@dataclass(frozen=True)
class GroupSales:
    label: str
    order_count: int
    revenue_cents: int
    average_order_cents: int = 0
    quantity: int = 0
    secondary_label: str | None = None


@dataclass(frozen=True)
class SalesReport:
    by_category: list[GroupSales] = field(default_factory=list)
    by_table: list[GroupSales] = field(default_factory=list)
    by_zone: list[GroupSales] = field(default_factory=list)
    by_employee: list[GroupSales] = field(default_factory=list)


@dataclass(frozen=True)
class RecentOrder:
    order_id: int
    order_number: str
    status: str
    payment_status: str
    total_cents: int
    table_number: str | None
    created_by_name: str
    created_at: datetime


@dataclass(frozen=True)
class DashboardData:
    revenue_cents: int
    total_orders: int
    pending_orders: int
    completed_orders: int
    active_staff: int
    total_tables: int
    available_tables: int
    recent_orders: list[RecentOrder] = field(default_factory=list)
    top_items: list[ItemSales] = field(default_factory=list)
    by_status: list[CountByKey] = field(default_factory=list)


@dataclass(frozen=True)
class EntityCounts:
    staff: int
    tables: int
    menu_items: int
    orders: int
    payments: int


@dataclass(frozen=True)
class ActivityEntry:
    kind: str
    identifier: str
    order_number: str
    occurred_at: datetime
    staff_name: str | None = None
    amount_cents: int | None = None
    currency: str | None = None


@dataclass(frozen=True)
class SystemStats:
    counts: EntityCounts
    recent_activity: list[ActivityEntry] = field(default_factory=list)


class ReportRepository(Protocol):
    def order_summary(self, period: DateRange | None) -> OrderStatsSummary: ...

    def financial_report(self, period: DateRange) -> FinancialReport: ...

    def sales_report(self, period: DateRange) -> SalesReport: ...

    def dashboard(self, period: DateRange | None) -> DashboardData: ...

    def system_stats(self, since: datetime, limit: int) -> SystemStats: ...
