from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cafepos.application.ports.repositories import (
    ActiveOrderExistsError,
    CountByKey,
    DuplicateKeyError,
    OptimisticConcurrencyError,
    TableDetails,
    TableRepository,
    TableStatusSummary,
)
from cafepos.domain.common.ids import OrderId, TableId
from cafepos.domain.table.entities import OCCUPIED_STATUSES, Table, TableStatus
from cafepos.infrastructure.db.models.order import OrderModel
from cafepos.infrastructure.db.models.table import TableModel
from cafepos.infrastructure.db.repositories.common import (
    ACTIVE_STATUS_VALUES,
    as_utc,
    has_active_order,
    table_number_sort_key,
)
from cafepos.infrastructure.db.session import get_engine


class SqlAlchemyTableRepository(TableRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, table_id: TableId) -> Table | None:
        with Session(self._engine) as session:
            model = session.get(TableModel, table_id)
            if model is None:
                return None
            return self._to_domain(model)

    def get_details(self, table_id: TableId) -> TableDetails | None:
        with Session(self._engine) as session:
            model = session.get(TableModel, table_id)
            if model is None:
                return None
            return self._with_current_orders(session, [model])[0]

    def list_details(self) -> list[TableDetails]:
        with Session(self._engine) as session:
            models = sorted(
                session.execute(select(TableModel)).scalars().all(),
                key=lambda model: (model.zone, table_number_sort_key(model.number)),
            )
            return self._with_current_orders(session, models)

    def find_by_number(self, number: str) -> Table | None:
        statement = select(TableModel).where(TableModel.number == number).limit(1)
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return self._to_domain(model)

    def add(self, table: Table) -> Table:
        model = TableModel(
            number=table.number,
            zone=table.zone,
            seats=table.seats,
            status=table.status.value,
            version=table.version,
            created_at=table.created_at or datetime.now(timezone.utc),
            updated_at=table.updated_at or datetime.now(timezone.utc),
        )
        with Session(self._engine) as session:
            session.add(model)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError(f"table number {table.number} already exists") from exc
            return self._to_domain(model)

    def update(self, table: Table) -> Table:
        statement = (
            update(TableModel)
            .where(
                TableModel.id == table.table_id,
                TableModel.version == table.version,
            )
            .values(
                number=table.number,
                zone=table.zone,
                seats=table.seats,
                status=table.status.value,
                version=TableModel.version + 1,
                updated_at=table.updated_at or datetime.now(timezone.utc),
            )
        )
        with Session(self._engine) as session:
            try:
                result = session.execute(statement)
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError(f"table number {table.number} already exists") from exc
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(f"table {table.table_id} version conflict")
            session.commit()
            model = session.get(TableModel, table.table_id)
            if model is None:
                raise RuntimeError(f"table {table.table_id} not found after update")
            return self._to_domain(model)

    def delete(self, table_id: TableId, expected_version: int) -> None:
        # Claiming the version serialises the delete against order creation on this table.
        claim_table = (
            update(TableModel)
            .where(TableModel.id == table_id, TableModel.version == expected_version)
            .values(version=TableModel.version + 1)
        )
        with Session(self._engine) as session:
            if session.execute(claim_table).rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(f"table {table_id} version conflict")
            if has_active_order(session, table_id):
                session.rollback()
                raise ActiveOrderExistsError(f"table {table_id} has an active order")
            # Historical orders keep their rows; they just lose the table link.
            session.execute(
                update(OrderModel).where(OrderModel.table_id == table_id).values(table_id=None)
            )
            session.execute(delete(TableModel).where(TableModel.id == table_id))
            session.commit()

    def has_active_order(self, table_id: TableId) -> bool:
        with Session(self._engine) as session:
            return has_active_order(session, table_id)

    def summarize(self) -> TableStatusSummary:
        with Session(self._engine) as session:
            by_status = [
                CountByKey(key=row[0], count=int(row[1]))
                for row in session.execute(
                    select(TableModel.status, func.count(TableModel.id))
                    .group_by(TableModel.status)
                    .order_by(TableModel.status)
                )
            ]
            by_zone = [
                CountByKey(key=row[0], count=int(row[1]))
                for row in session.execute(
                    select(TableModel.zone, func.count(TableModel.id))
                    .group_by(TableModel.zone)
                    .order_by(TableModel.zone)
                )
            ]

        occupied_values = {status.value for status in OCCUPIED_STATUSES}
        return TableStatusSummary(
            total_tables=sum(row.count for row in by_status),
            occupied_tables=sum(row.count for row in by_status if row.key in occupied_values),
            by_status=by_status,
            by_zone=by_zone,
        )

    def _with_current_orders(self, session: Session, models: list[TableModel]) -> list[TableDetails]:
        if not models:
            return []
        statement = (
            select(OrderModel.table_id, OrderModel.id, OrderModel.order_number, OrderModel.total_cents)
            .where(
                OrderModel.table_id.in_([model.id for model in models]),
                OrderModel.status.in_(ACTIVE_STATUS_VALUES),
            )
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        )
        current: dict[int, tuple[int, str, int]] = {}
        for row in session.execute(statement):
            current.setdefault(row.table_id, (row.id, row.order_number, row.total_cents))

        details: list[TableDetails] = []
        for model in models:
            order = current.get(model.id)
            if order is None:
                details.append(TableDetails(table=self._to_domain(model)))
                continue
            details.append(
                TableDetails(
                    table=self._to_domain(model),
                    current_order_id=OrderId(order[0]),
                    current_order_number=order[1],
                    current_order_total_cents=order[2],
                )
            )
        return details

    def _to_domain(self, model: TableModel) -> Table:
        return Table(
            table_id=TableId(model.id),
            number=model.number,
            zone=model.zone,
            seats=model.seats,
            status=TableStatus(model.status),
            version=model.version,
            created_at=as_utc(model.created_at) if model.created_at else None,
            updated_at=as_utc(model.updated_at) if model.updated_at else None,
        )

