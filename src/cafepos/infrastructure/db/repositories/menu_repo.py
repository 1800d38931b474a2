from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, delete, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from cafepos.application.ports.repositories import DuplicateKeyError, EntityInUseError, MenuRepository
from cafepos.domain.common.ids import CategoryId, MenuItemId
from cafepos.domain.common.money import Money
from cafepos.domain.menu.entities import Category, MenuItem, Subcategory
from cafepos.infrastructure.db.models.menu import CategoryModel, MenuItemModel
from cafepos.infrastructure.db.models.order import OrderLineModel
from cafepos.infrastructure.db.repositories.common import as_utc
from cafepos.infrastructure.db.session import get_engine


class SqlAlchemyMenuRepository(MenuRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def list_categories(self) -> list[Category]:
        statement = select(CategoryModel).order_by(CategoryModel.display_order, CategoryModel.name)
        with Session(self._engine) as session:
            return [_category_to_domain(model) for model in session.execute(statement).scalars()]

    def get_category(self, category_id: CategoryId) -> Category | None:
        with Session(self._engine) as session:
            model = session.get(CategoryModel, category_id)
            if model is None:
                return None
            return _category_to_domain(model)

    def find_category_by_name(self, name: str) -> Category | None:
        statement = select(CategoryModel).where(CategoryModel.name == name).limit(1)
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return _category_to_domain(model)

    def add_category(self, category: Category) -> Category:
        model = CategoryModel(name=category.name, display_order=category.display_order)
        with Session(self._engine) as session:
            session.add(model)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError(f"category {category.name} already exists") from exc
            return _category_to_domain(model)

    def update_category(self, category: Category) -> Category:
        with Session(self._engine) as session:
            model = session.get(CategoryModel, category.category_id)
            if model is None:
                raise RuntimeError(f"category {category.category_id} not found")
            model.name = category.name
            model.display_order = category.display_order
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateKeyError(f"category {category.name} already exists") from exc
            return _category_to_domain(model)

    def delete_category(self, category_id: CategoryId) -> None:
        with Session(self._engine) as session:
            try:
                session.execute(delete(CategoryModel).where(CategoryModel.id == category_id))
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise EntityInUseError(f"category {category_id} is referenced") from exc

    def category_has_items(self, category_id: CategoryId) -> bool:
        statement = select(exists().where(MenuItemModel.category_id == category_id))
        with Session(self._engine) as session:
            return bool(session.execute(statement).scalar())

    def list_items(self, available_only: bool) -> list[MenuItem]:
        statement = (
            select(MenuItemModel)
            .join(CategoryModel, MenuItemModel.category_id == CategoryModel.id)
            .options(joinedload(MenuItemModel.category))
            .order_by(CategoryModel.display_order, CategoryModel.name, MenuItemModel.name, MenuItemModel.id)
        )
        if available_only:
            statement = statement.where(MenuItemModel.is_available.is_(True))
        with Session(self._engine) as session:
            return [_item_to_domain(model) for model in session.execute(statement).scalars()]

    def get_item(self, item_id: MenuItemId) -> MenuItem | None:
        statement = (
            select(MenuItemModel)
            .options(joinedload(MenuItemModel.category))
            .where(MenuItemModel.id == item_id)
            .limit(1)
        )
        with Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return _item_to_domain(model)

    def get_items(self, item_ids: list[MenuItemId]) -> dict[MenuItemId, MenuItem]:
        if not item_ids:
            return {}
        statement = (
            select(MenuItemModel)
            .options(joinedload(MenuItemModel.category))
            .where(MenuItemModel.id.in_(set(item_ids)))
        )
        with Session(self._engine) as session:
            return {
                MenuItemId(model.id): _item_to_domain(model)
                for model in session.execute(statement).scalars()
            }

    def add_item(self, item: MenuItem) -> MenuItem:
        now = datetime.now(timezone.utc)
        model = MenuItemModel(
            category_id=item.category_id,
            name=item.name,
            price_cents=item.price_money.amount_cents,
            currency=item.price_money.currency,
            is_available=item.is_available,
            subcategory=item.subcategory.value,
            icon=item.icon,
            created_at=item.created_at or now,
            updated_at=item.updated_at or now,
        )
        with Session(self._engine) as session:
            session.add(model)
            session.commit()
            item_id = MenuItemId(model.id)

        created = self.get_item(item_id)
        if created is None:
            raise RuntimeError(f"menu item {item_id} not found after insert")
        return created

    def update_item(self, item: MenuItem) -> MenuItem:
        with Session(self._engine) as session:
            model = session.get(MenuItemModel, item.item_id)
            if model is None:
                raise RuntimeError(f"menu item {item.item_id} not found")
            model.category_id = item.category_id
            model.name = item.name
            model.price_cents = item.price_money.amount_cents
            model.currency = item.price_money.currency
            model.is_available = item.is_available
            model.subcategory = item.subcategory.value
            model.icon = item.icon
            model.updated_at = item.updated_at or datetime.now(timezone.utc)
            session.commit()

        updated = self.get_item(MenuItemId(item.item_id))
        if updated is None:
            raise RuntimeError(f"menu item {item.item_id} not found after update")
        return updated

    def delete_item(self, item_id: MenuItemId) -> None:
        with Session(self._engine) as session:
            try:
                session.execute(delete(MenuItemModel).where(MenuItemModel.id == item_id))
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise EntityInUseError(f"menu item {item_id} is referenced") from exc

    def item_is_referenced(self, item_id: MenuItemId) -> bool:
        statement = select(exists().where(OrderLineModel.menu_item_id == item_id))
        with Session(self._engine) as session:
            return bool(session.execute(statement).scalar())


def _category_to_domain(model: CategoryModel) -> Category:
    return Category(
        category_id=CategoryId(model.id),
        name=model.name,
        display_order=model.display_order,
    )


def _item_to_domain(model: MenuItemModel) -> MenuItem:
    return MenuItem(
        item_id=MenuItemId(model.id),
        name=model.name,
        price_money=Money(amount_cents=model.price_cents, currency=model.currency),
        category_id=CategoryId(model.category_id),
        is_available=model.is_available,
        subcategory=Subcategory(model.subcategory),
        icon=model.icon,
        category_name=model.category.name if model.category is not None else None,
        created_at=as_utc(model.created_at) if model.created_at else None,
        updated_at=as_utc(model.updated_at) if model.updated_at else None,
    )
