from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from cafepos.domain.order.entities import ACTIVE_STATUSES
from cafepos.infrastructure.db.models.order import OrderModel

ACTIVE_STATUS_VALUES = [status.value for status in ACTIVE_STATUSES]


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def day_bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """Half-open UTC interval covering the calendar days ``start..end`` inclusive."""
    lower = datetime.combine(start, time.min, tzinfo=timezone.utc)
    upper = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return lower, upper


def average_cents(total_cents: int, count: int) -> int:
    if count <= 0:
        return 0
    quotient = (Decimal(total_cents) / Decimal(count)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(quotient)


def as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def has_active_order(session: Session, table_id: int | None) -> bool:
    statement = select(
        exists().where(
            OrderModel.table_id == table_id,
            OrderModel.status.in_(ACTIVE_STATUS_VALUES),
        )
    )
    return bool(session.execute(statement).scalar())


def table_number_sort_key(number: str) -> tuple[int, int, str]:
    # Numeric labels first in numeric order, then the rest alphabetically.
    if number.isdigit():
        return (0, int(number), number)
    return (1, 0, number)
