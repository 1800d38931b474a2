from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import Engine

from cafepos.api.dependencies import get_db_engine, pos_currency, require_roles
from cafepos.application.dto.responses import (
    DashboardResponse,
    FinancialReportResponse,
    SalesReportResponse,
    SystemStatsResponse,
)
from cafepos.application.use_cases.reports import (
    GetDashboard,
    GetFinancialReport,
    GetSalesReport,
    GetSystemStats,
)
from cafepos.domain.staff.entities import Staff, StaffRole
from cafepos.infrastructure.db.repositories.report_repo import SqlAlchemyReportRepository

router = APIRouter(prefix="/admin", tags=["admin"])

_admin = require_roles(StaffRole.ADMIN)


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(_admin),
) -> DashboardResponse:
    use_case = GetDashboard(report_repository=SqlAlchemyReportRepository(engine), currency=pos_currency())
    return use_case.execute(start=start_date, end=end_date)


@router.get("/reports/financial", response_model=FinancialReportResponse)
def financial_report(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(_admin),
) -> FinancialReportResponse:
    use_case = GetFinancialReport(
        report_repository=SqlAlchemyReportRepository(engine),
        currency=pos_currency(),
    )
    return use_case.execute(start_date, end_date)


@router.get("/reports/sales", response_model=SalesReportResponse)
def sales_report(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(_admin),
) -> SalesReportResponse:
    use_case = GetSalesReport(report_repository=SqlAlchemyReportRepository(engine), currency=pos_currency())
    return use_case.execute(start_date, end_date)


@router.get("/stats/system", response_model=SystemStatsResponse)
def system_stats(
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(_admin),
) -> SystemStatsResponse:
    use_case = GetSystemStats(report_repository=SqlAlchemyReportRepository(engine), currency=pos_currency())
    return use_case.execute()
