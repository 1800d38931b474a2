from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from cafepos.domain.common.ids import CategoryId, MenuItemId, OrderId, StaffId, TableId
from cafepos.domain.menu.entities import Category, MenuItem
from cafepos.domain.order.entities import Order, OrderStatus
from cafepos.domain.payment.entities import PaymentRecord
from cafepos.domain.staff.entities import Staff
from cafepos.domain.table.entities import Table, TableStatus


@dataclass(frozen=True)
class TableDetails:
    table: Table
    current_order_id: OrderId | None = None
    current_order_number: str | None = None
    current_order_total_cents: int = 0


@dataclass(frozen=True)
class OrderDetails:
    order: Order
    table_number: str | None
    table_zone: str | None
    created_by_name: str
    created_by_employee_id: str
    paid_cents: int = 0
    line_categories: dict[MenuItemId, str] = field(default_factory=dict)


@dataclass(frozen=True)
class OrderFilters:
    status: OrderStatus | None = None
    table_id: TableId | None = None
    created_on: date | None = None


@dataclass(frozen=True)
class CountByKey:
    key: str
    count: int


@dataclass(frozen=True)
class TableStatusSummary:
    total_tables: int
    occupied_tables: int
    by_status: list[CountByKey]
    by_zone: list[CountByKey]

    @property
    def available_tables(self) -> int:
        return self.total_tables - self.occupied_tables


class MenuRepository(Protocol):
    def list_categories(self) -> list[Category]: ...

    def get_category(self, category_id: CategoryId) -> Category | None: ...

    def find_category_by_name(self, name: str) -> Category | None: ...

    def add_category(self, category: Category) -> Category: ...

    def update_category(self, category: Category) -> Category: ...

    def delete_category(self, category_id: CategoryId) -> None: ...

    def category_has_items(self, category_id: CategoryId) -> bool: ...

    def list_items(self, available_only: bool) -> list[MenuItem]: ...

    def get_item(self, item_id: MenuItemId) -> MenuItem | None: ...

    def get_items(self, item_ids: list[MenuItemId]) -> dict[MenuItemId, MenuItem]: ...

    def add_item(self, item: MenuItem) -> MenuItem: ...

    def update_item(self, item: MenuItem) -> MenuItem: ...

    def delete_item(self, item_id: MenuItemId) -> None: ...

    def item_is_referenced(self, item_id: MenuItemId) -> bool: ...


class TableRepository(Protocol):
    def get(self, table_id: TableId) -> Table | None: ...

    def get_details(self, table_id: TableId) -> TableDetails | None: ...

    def list_details(self) -> list[TableDetails]: ...

    def find_by_number(self, number: str) -> Table | None: ...

    def add(self, table: Table) -> Table: ...

    def update(self, table: Table) -> Table: ...

    def delete(self, table_id: TableId, expected_version: int) -> None: ...

    def has_active_order(self, table_id: TableId) -> bool: ...

    def summarize(self) -> TableStatusSummary: ...


class OrderRepository(Protocol):
    def add_for_table(self, order: Order, expected_table_version: int) -> OrderDetails: ...

    def get(self, order_id: OrderId) -> OrderDetails | None: ...

    def list_orders(self, filters: OrderFilters) -> list[OrderDetails]: ...

    def save_transition(
        self,
        order: Order,
        table_status: TableStatus,
        expected_version: int,
    ) -> OrderDetails: ...

    def add_payment(
        self,
        order: Order,
        payment: PaymentRecord,
        table_status: TableStatus | None,
        expected_version: int,
    ) -> PaymentRecord: ...

    def paid_cents(self, order_id: OrderId) -> int: ...

    def list_payments(self, order_id: OrderId) -> list[PaymentRecord]: ...


class StaffRepository(Protocol):
    def get(self, staff_id: StaffId) -> Staff | None: ...


class OptimisticConcurrencyError(Exception):
    pass


class ActiveOrderExistsError(Exception):
    pass


class OrderNumberConflictError(Exception):
    pass


class DuplicateKeyError(Exception):
    pass


class EntityInUseError(Exception):
    pass
