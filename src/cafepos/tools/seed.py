from __future__ import annotations

import argparse
import logging
from decimal import Decimal

from sqlalchemy import Engine, inspect, select
from sqlalchemy.orm import Session

from cafepos.domain.common.money import Money
from cafepos.infrastructure.db.models.menu import CategoryModel, MenuItemModel
from cafepos.infrastructure.db.models.staff import StaffModel
from cafepos.infrastructure.db.models.table import TableModel
from cafepos.infrastructure.db.schema import create_schema
from cafepos.infrastructure.db.session import get_engine

logger = logging.getLogger(__name__)

STAFF = [
    {"name": "Admin User", "employee_id": "0001", "role": "Admin"},
    {"name": "Floor Waiter", "employee_id": "0002", "role": "Waiter"},
    {"name": "Front Cashier", "employee_id": "0003", "role": "Cashier"},
]

CATEGORIES = [
    "Famous Prata Items",
    "Goreng Items",
    "Biryani",
    "Thosai",
    "Coffees",
    "Cold Drinks",
    "Teas",
    "Desserts",
]

TABLES = [
    ("1", "Section 1", 4),
    ("2", "Section 1", 4),
    ("3", "Section 1", 6),
    ("4", "Section 2", 4),
    ("5", "Section 2", 4),
    ("6", "Section 2", 8),
    ("7", "Section 3", 4),
    ("8", "Section 3", 6),
    ("9", "Section 3", 4),
    ("10", "Section 3", 6),
]

# name, price, category, subcategory, icon
MENU_ITEMS = [
    ("Prata Kosong", "1.50", "Famous Prata Items", "Normal", "🥞"),
    ("Prata Egg", "2.00", "Famous Prata Items", "Normal", "🥞"),
    ("Prata Onion", "2.00", "Famous Prata Items", "Normal", "🥞"),
    ("Prata Tissue", "3.50", "Famous Prata Items", "Special", "🥞"),
    ("Roti John", "3.50", "Famous Prata Items", "Normal", "🥞"),
    ("Mee Goreng Chicken", "5.50", "Goreng Items", "Normal", "🍜"),
    ("Maggi Goreng", "4.50", "Goreng Items", "Normal", "🍜"),
    ("Nasi Goreng Combo", "7.50", "Goreng Items", "Special", "🍜"),
    ("Chicken Biryani", "8.50", "Biryani", "Normal", "🍛"),
    ("Mutton Biryani", "10.00", "Biryani", "Normal", "🍛"),
    ("Normal Thosai", "2.00", "Thosai", "Normal", "🥘"),
    ("Egg Thosai", "3.00", "Thosai", "Normal", "🥘"),
    ("Kopi", "1.50", "Coffees", "Normal", "☕"),
    ("Kopi O", "1.30", "Coffees", "Normal", "☕"),
    ("Kopi C Peng", "2.00", "Coffees", "Normal", "☕"),
    ("Milo", "2.00", "Cold Drinks", "Normal", "🧊"),
    ("Lime Juice", "2.50", "Cold Drinks", "Normal", "🧊"),
    ("Bandung", "2.50", "Cold Drinks", "Special", "🧊"),
    ("Teh", "1.50", "Teas", "Normal", "🍵"),
    ("Teh Tarik", "2.00", "Teas", "Special", "🍵"),
    ("Cendol", "3.50", "Desserts", "Special", "🍨"),
    ("Ice Kacang", "4.00", "Desserts", "Special", "🍨"),
]


def seed(engine: Engine, currency: str = "SGD") -> None:
    """Insert missing reference data; existing rows are left untouched."""
    with Session(engine) as session:
        for staff in STAFF:
            exists = session.execute(
                select(StaffModel.id).where(StaffModel.employee_id == staff["employee_id"])
            ).first()
            if exists is None:
                session.add(StaffModel(status="Active", **staff))

        categories: dict[str, CategoryModel] = {}
        for display_order, name in enumerate(CATEGORIES, start=1):
            category = session.execute(
                select(CategoryModel).where(CategoryModel.name == name)
            ).scalar_one_or_none()
            if category is None:
                category = CategoryModel(name=name, display_order=display_order)
                session.add(category)
            categories[name] = category

        for number, zone, seats in TABLES:
            exists = session.execute(select(TableModel.id).where(TableModel.number == number)).first()
            if exists is None:
                session.add(TableModel(number=number, zone=zone, seats=seats, status="Available", version=1))

        session.flush()

        for name, price, category_name, subcategory, icon in MENU_ITEMS:
            category = categories[category_name]
            exists = session.execute(
                select(MenuItemModel.id).where(
                    MenuItemModel.name == name,
                    MenuItemModel.category_id == category.id,
                )
            ).first()
            if exists is not None:
                continue
            session.add(
                MenuItemModel(
                    category_id=category.id,
                    name=name,
                    price_cents=Money.from_decimal(Decimal(price), currency).amount_cents,
                    currency=currency,
                    is_available=True,
                    subcategory=subcategory,
                    icon=icon,
                )
            )

        session.commit()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed staff, tables and the menu catalog.")
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables from the ORM metadata instead of requiring alembic.",
    )
    parser.add_argument("--currency", default="SGD")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO)
    args = _parse_args(argv)
    engine = get_engine(timeout_seconds=2.0)

    if args.create_schema:
        create_schema(engine)
    elif "orders" not in set(inspect(engine).get_table_names()):
        logger.warning("no schema yet; run alembic upgrade head or pass --create-schema")
        return

    seed(engine, currency=args.currency.upper())
    logger.info("seed complete")


if __name__ == "__main__":
    main()
