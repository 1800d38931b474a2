from __future__ import annotations

import os
from collections.abc import Callable
from decimal import Decimal, InvalidOperation

from fastapi import Depends, Header, Request
from sqlalchemy import Engine

from cafepos.application.use_cases.authenticate_staff import AuthenticateStaff
from cafepos.domain.order.billing import GST_RATE, PaymentAccrual
from cafepos.domain.staff.entities import Staff, StaffRole
from cafepos.infrastructure.db.repositories.staff_repo import SqlAlchemyStaffRepository
from cafepos.infrastructure.db.session import get_engine

STAFF_ID_HEADER = "X-Staff-Id"


def get_db_engine(request: Request) -> Engine:
    engine = getattr(request.app.state, "engine", None)
    return engine or get_engine()


def pos_currency() -> str:
    return os.getenv("POS_CURRENCY", "SGD").strip().upper() or "SGD"


def gst_rate() -> Decimal:
    raw_value = os.getenv("POS_GST_RATE")
    if not raw_value:
        return GST_RATE
    try:
        return Decimal(raw_value)
    except InvalidOperation as exc:
        raise RuntimeError(f"POS_GST_RATE is not a number: {raw_value}") from exc


def payment_accrual() -> PaymentAccrual:
    raw_value = os.getenv("POS_PAYMENT_ACCRUAL", PaymentAccrual.SINGLE.value).strip().lower()
    try:
        return PaymentAccrual(raw_value)
    except ValueError as exc:
        raise RuntimeError(f"POS_PAYMENT_ACCRUAL must be single or cumulative, got {raw_value}") from exc


def menu_cache_ttl() -> int:
    return int(os.getenv("POS_MENU_CACHE_TTL", "300"))


def require_roles(*roles: StaffRole) -> Callable[..., Staff]:
    """Dependency resolving the acting staff member; with no roles any active staff passes."""
    allowed = frozenset(roles) or None

    def dependency(
        engine: Engine = Depends(get_db_engine),
        staff_id: str | None = Header(default=None, alias=STAFF_ID_HEADER),
    ) -> Staff:
        use_case = AuthenticateStaff(staff_repository=SqlAlchemyStaffRepository(engine))
        return use_case.execute(staff_id, allowed_roles=allowed)

    return dependency


current_staff = require_roles()
