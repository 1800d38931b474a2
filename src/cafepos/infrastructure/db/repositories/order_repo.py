from __future__ import annotations

from sqlalchemy import Engine, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from cafepos.application.ports.repositories import (
    ActiveOrderExistsError,
    OptimisticConcurrencyError,
    OrderDetails,
    OrderFilters,
    OrderNumberConflictError,
    OrderRepository,
)
from cafepos.domain.common.ids import MenuItemId, OrderId, OrderLineId, PaymentId, StaffId, TableId
from cafepos.domain.common.money import Money
from cafepos.domain.order.billing import PaymentStatus
from cafepos.domain.order.entities import Order, OrderLine, OrderStatus
from cafepos.domain.payment.entities import PaymentRecord, PaymentRecordStatus
from cafepos.domain.table.entities import TableStatus
from cafepos.infrastructure.db.models.menu import CategoryModel, MenuItemModel
from cafepos.infrastructure.db.models.order import OrderLineModel, OrderModel, PaymentModel
from cafepos.infrastructure.db.models.staff import StaffModel
from cafepos.infrastructure.db.models.table import TableModel
from cafepos.infrastructure.db.repositories.common import as_utc, day_bounds, has_active_order
from cafepos.infrastructure.db.session import get_engine


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def add_for_table(self, order: Order, expected_table_version: int) -> OrderDetails:
        claim_table = (
            update(TableModel)
            .where(
                TableModel.id == order.table_id,
                TableModel.version == expected_table_version,
            )
            .values(
                status=TableStatus.ORDERING.value,
                version=TableModel.version + 1,
                updated_at=order.created_at,
            )
        )
        with Session(self._engine) as session:
            result = session.execute(claim_table)
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(f"table {order.table_id} version conflict")

            if has_active_order(session, order.table_id):
                session.rollback()
                raise ActiveOrderExistsError(f"table {order.table_id} already has an active order")

            model = self._to_model(order)
            session.add(model)
            try:
                session.flush()
                order_id = OrderId(model.id)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                taken = session.execute(
                    select(OrderModel.id).where(OrderModel.order_number == order.order_number)
                ).first()
                if taken is not None:
                    raise OrderNumberConflictError(
                        f"order number {order.order_number} already exists"
                    ) from exc
                raise

        created = self.get(order_id)
        if created is None:
            raise RuntimeError(f"order {order_id} not found after insert")
        return created

    def get(self, order_id: OrderId) -> OrderDetails | None:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.lines))
            .where(OrderModel.id == order_id)
            .limit(1)
        )
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return self._load_details(session, [model])[0]

    def list_orders(self, filters: OrderFilters) -> list[OrderDetails]:
        statement = select(OrderModel).options(selectinload(OrderModel.lines))
        if filters.status is not None:
            statement = statement.where(OrderModel.status == filters.status.value)
        if filters.table_id is not None:
            statement = statement.where(OrderModel.table_id == filters.table_id)
        if filters.created_on is not None:
            lower, upper = day_bounds(filters.created_on, filters.created_on)
            statement = statement.where(OrderModel.created_at >= lower, OrderModel.created_at < upper)
        statement = statement.order_by(OrderModel.created_at.desc(), OrderModel.id.desc())

        with Session(self._engine) as session:
            models = list(session.execute(statement).scalars().all())
            return self._load_details(session, models)

    def save_transition(
        self,
        order: Order,
        table_status: TableStatus,
        expected_version: int,
    ) -> OrderDetails:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == order.order_id,
                OrderModel.version == expected_version,
            )
            .values(
                status=order.status.value,
                updated_at=order.updated_at,
                version=OrderModel.version + 1,
            )
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")
            if order.table_id is not None:
                _set_table_status(session, order.table_id, table_status, order)
            session.commit()

        updated = self.get(OrderId(order.order_id))
        if updated is None:
            raise RuntimeError(f"order {order.order_id} not found after status update")
        return updated

    def add_payment(
        self,
        order: Order,
        payment: PaymentRecord,
        table_status: TableStatus | None,
        expected_version: int,
    ) -> PaymentRecord:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == order.order_id,
                OrderModel.version == expected_version,
            )
            .values(
                status=order.status.value,
                payment_status=order.payment_status.value,
                payment_method=order.payment_method,
                updated_at=order.updated_at,
                version=OrderModel.version + 1,
            )
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")

            model = PaymentModel(
                order_id=payment.order_id,
                amount_cents=payment.amount.amount_cents,
                currency=payment.amount.currency,
                method=payment.method,
                status=payment.status.value,
                external_txn_id=payment.external_txn_id,
                created_at=payment.created_at,
            )
            session.add(model)
            if table_status is not None and order.table_id is not None:
                _set_table_status(session, order.table_id, table_status, order)
            session.flush()
            payment_id = PaymentId(model.id)
            session.commit()

        return PaymentRecord(
            payment_id=payment_id,
            order_id=payment.order_id,
            amount=payment.amount,
            method=payment.method,
            status=payment.status,
            created_at=payment.created_at,
            external_txn_id=payment.external_txn_id,
        )

    def paid_cents(self, order_id: OrderId) -> int:
        statement = select(func.coalesce(func.sum(PaymentModel.amount_cents), 0)).where(
            PaymentModel.order_id == order_id,
            PaymentModel.status == PaymentRecordStatus.COMPLETED.value,
        )
        with Session(self._engine) as session:
            return int(session.execute(statement).scalar_one())

    def list_payments(self, order_id: OrderId) -> list[PaymentRecord]:
        statement = (
            select(PaymentModel)
            .where(PaymentModel.order_id == order_id)
            .order_by(PaymentModel.created_at, PaymentModel.id)
        )
        with Session(self._engine) as session:
            models = list(session.execute(statement).scalars().all())
        return [
            PaymentRecord(
                payment_id=PaymentId(model.id),
                order_id=OrderId(model.order_id),
                amount=Money(amount_cents=model.amount_cents, currency=model.currency),
                method=model.method,
                status=PaymentRecordStatus(model.status),
                created_at=as_utc(model.created_at),
                external_txn_id=model.external_txn_id,
            )
            for model in models
        ]

    def _load_details(self, session: Session, models: list[OrderModel]) -> list[OrderDetails]:
        if not models:
            return []

        table_ids = {model.table_id for model in models if model.table_id is not None}
        staff_ids = {model.created_by for model in models}
        item_ids = {line.menu_item_id for model in models for line in model.lines}
        order_ids = [model.id for model in models]

        tables = {
            row.id: (row.number, row.zone)
            for row in session.execute(
                select(TableModel.id, TableModel.number, TableModel.zone).where(
                    TableModel.id.in_(table_ids)
                )
            )
        }
        staff = {
            row.id: (row.name, row.employee_id)
            for row in session.execute(
                select(StaffModel.id, StaffModel.name, StaffModel.employee_id).where(
                    StaffModel.id.in_(staff_ids)
                )
            )
        }
        categories = {
            MenuItemId(row.id): row.name
            for row in session.execute(
                select(MenuItemModel.id, CategoryModel.name)
                .join(CategoryModel, MenuItemModel.category_id == CategoryModel.id)
                .where(MenuItemModel.id.in_(item_ids))
            )
        }
        paid = {
            row[0]: int(row[1] or 0)
            for row in session.execute(
                select(PaymentModel.order_id, func.sum(PaymentModel.amount_cents))
                .where(
                    PaymentModel.order_id.in_(order_ids),
                    PaymentModel.status == PaymentRecordStatus.COMPLETED.value,
                )
                .group_by(PaymentModel.order_id)
            )
        }

        details: list[OrderDetails] = []
        for model in models:
            table_number, table_zone = tables.get(model.table_id, (None, None))
            staff_name, employee_id = staff.get(model.created_by, ("", ""))
            order = self._to_domain(model)
            details.append(
                OrderDetails(
                    order=order,
                    table_number=table_number,
                    table_zone=table_zone,
                    created_by_name=staff_name,
                    created_by_employee_id=employee_id,
                    paid_cents=paid.get(model.id, 0),
                    line_categories={
                        line.item_id: categories[line.item_id]
                        for line in order.lines
                        if line.item_id in categories
                    },
                )
            )
        return details

    def _to_model(self, order: Order) -> OrderModel:
        order_model = OrderModel(
            order_number=order.order_number,
            table_id=order.table_id,
            created_by=order.created_by,
            status=order.status.value,
            payment_status=order.payment_status.value,
            payment_method=order.payment_method,
            subtotal_cents=order.subtotal.amount_cents,
            tax_cents=order.tax.amount_cents,
            total_cents=order.total.amount_cents,
            currency=order.total.currency,
            notes=order.notes,
            version=order.version,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
        order_model.lines = [
            OrderLineModel(
                menu_item_id=line.item_id,
                name=line.name,
                quantity=line.quantity,
                unit_price_cents=line.unit_price.amount_cents,
                line_total_cents=line.line_total.amount_cents,
                currency=line.unit_price.currency,
                modifiers=line.modifiers,
                notes=line.notes,
            )
            for line in order.lines
        ]
        return order_model

    def _to_domain(self, model: OrderModel) -> Order:
        lines = [
            OrderLine(
                line_id=OrderLineId(line.id),
                item_id=MenuItemId(line.menu_item_id),
                name=line.name,
                quantity=line.quantity,
                unit_price=Money(amount_cents=line.unit_price_cents, currency=line.currency),
                line_total=Money(amount_cents=line.line_total_cents, currency=line.currency),
                modifiers=list(line.modifiers) if line.modifiers is not None else None,
                notes=line.notes,
            )
            for line in model.lines
        ]
        return Order(
            order_id=OrderId(model.id),
            order_number=model.order_number,
            table_id=TableId(model.table_id) if model.table_id is not None else None,
            created_by=StaffId(model.created_by),
            status=OrderStatus(model.status),
            payment_status=PaymentStatus(model.payment_status),
            lines=lines,
            subtotal=Money(amount_cents=model.subtotal_cents, currency=model.currency),
            tax=Money(amount_cents=model.tax_cents, currency=model.currency),
            total=Money(amount_cents=model.total_cents, currency=model.currency),
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
            notes=model.notes,
            payment_method=model.payment_method,
            version=model.version,
        )


def _set_table_status(session: Session, table_id: int, status: TableStatus, order: Order) -> None:
    session.execute(
        update(TableModel)
        .where(TableModel.id == table_id)
        .values(
            status=status.value,
            version=TableModel.version + 1,
            updated_at=order.updated_at,
        )
    )
