from __future__ import annotations

import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from cafepos.application.ports.reports import (
    ActivityEntry,
    DateRange,
    EntityCounts,
    FinancialReport,
    GroupSales,
    ItemSales,
    PaymentMethodTotal,
    SalesReport,
    SystemStats,
)
from cafepos.application.use_cases.reports import (
    GetFinancialReport,
    GetSalesReport,
    GetSystemStats,
    InvalidReportPeriodError,
    parse_period,
    require_period,
)


class FakeReportRepository:
    def __init__(self) -> None:
        self.periods: list[DateRange | None] = []
        self.activity_queries: list[tuple[datetime, int]] = []

    def financial_report(self, period: DateRange) -> FinancialReport:
        self.periods.append(period)
        return FinancialReport(
            revenue_cents=880,
            subtotal_cents=800,
            tax_cents=80,
            paid_orders=2,
            average_order_cents=440,
            by_payment_method=[PaymentMethodTotal(method="Cash", amount_cents=880, transactions=2)],
            top_items=[ItemSales(name="Prata Egg", quantity=4, revenue_cents=800, average_price_cents=200)],
        )

    def sales_report(self, period: DateRange) -> SalesReport:
        self.periods.append(period)
        return SalesReport(
            by_table=[
                GroupSales(
                    label="5",
                    secondary_label="Section 2",
                    order_count=2,
                    revenue_cents=880,
                    average_order_cents=440,
                )
            ]
        )

    def system_stats(self, since: datetime, limit: int) -> SystemStats:
        self.activity_queries.append((since, limit))
        return SystemStats(
            counts=EntityCounts(staff=3, tables=10, menu_items=40, orders=2, payments=1),
            recent_activity=[
                ActivityEntry(
                    kind="payment",
                    identifier="PAY1",
                    order_number="ORD12345678ABCD",
                    occurred_at=datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc),
                    amount_cents=935,
                    currency="SGD",
                ),
                ActivityEntry(
                    kind="order",
                    identifier="ORD12345678ABCD",
                    order_number="ORD12345678ABCD",
                    occurred_at=datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc),
                    staff_name="Floor Waiter",
                ),
            ],
        )


def test_period_requires_both_bounds() -> None:
    assert parse_period(None, None) is None
    with pytest.raises(InvalidReportPeriodError):
        parse_period("2026-10-01", None)


def test_period_rejects_bad_dates() -> None:
    with pytest.raises(InvalidReportPeriodError):
        parse_period("2026-13-01", "2026-10-02")
    with pytest.raises(InvalidReportPeriodError):
        parse_period("2026-10-05", "2026-10-01")


def test_period_is_inclusive_of_both_days() -> None:
    period = require_period("2026-10-01", "2026-10-01")
    assert period == DateRange(start=date(2026, 10, 1), end=date(2026, 10, 1))


def test_admin_reports_require_a_period() -> None:
    repository = FakeReportRepository()

    with pytest.raises(InvalidReportPeriodError):
        GetFinancialReport(repository, currency="SGD").execute(None, None)
    assert repository.periods == []


def test_financial_report_maps_money_in_currency() -> None:
    response = GetFinancialReport(FakeReportRepository(), currency="SGD").execute("2026-10-01", "2026-10-31")

    assert response.totalRevenue.amountCents == 880
    assert response.totalTax.currency == "SGD"
    assert response.byPaymentMethod[0].transactionCount == 2
    assert response.topItems[0].averagePrice.amountCents == 200


def test_sales_report_keeps_secondary_labels() -> None:
    response = GetSalesReport(FakeReportRepository(), currency="SGD").execute("2026-10-01", "2026-10-31")

    assert response.byTable[0].label == "5"
    assert response.byTable[0].secondaryLabel == "Section 2"
    assert response.byCategory == []


def test_system_stats_looks_back_one_day() -> None:
    repository = FakeReportRepository()
    now = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

    response = GetSystemStats(repository, currency="SGD", now=lambda: now).execute()

    assert repository.activity_queries == [(now - timedelta(hours=24), 20)]
    assert response.database.menuItems == 40
    assert [entry.type for entry in response.recentActivity] == ["payment", "order"]
    assert response.recentActivity[0].description == "Payment of SGD 9.35 processed"
    assert response.recentActivity[0].amount.amountCents == 935
    assert response.recentActivity[1].description == "Order created by Floor Waiter"
    assert response.recentActivity[1].amount is None
