from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal

from cafepos.application.dto.requests import CategoryRequest, MenuItemRequest
from cafepos.application.dto.responses import (
    CategoryListResponse,
    CategoryResponse,
    MenuItemListResponse,
    MenuItemResponse,
)
from cafepos.application.errors import ConflictError, NotFoundError, ValidationError
from cafepos.application.mappers.menu_mapper import to_category_response, to_menu_item_response
from cafepos.application.ports.cache import CacheStore
from cafepos.application.ports.repositories import (
    DuplicateKeyError,
    EntityInUseError,
    MenuRepository,
)
from cafepos.application.use_cases.get_menu import invalidate_menu_cache
from cafepos.domain.common.ids import CategoryId, MenuItemId
from cafepos.domain.common.money import Money
from cafepos.domain.menu.entities import DEFAULT_ICON, Category, MenuItem, Subcategory

logger = logging.getLogger(__name__)


class CategoryNotFoundError(NotFoundError):
    pass


class MenuItemNotFoundError(NotFoundError):
    pass


class DuplicateCategoryError(ValidationError):
    pass


class InvalidMenuItemError(ValidationError):
    pass


class CategoryInUseError(ConflictError):
    pass


class MenuItemInUseError(ConflictError):
    pass


def _parse_subcategory(value: str | None) -> Subcategory:
    if value is None or not value.strip():
        return Subcategory.NORMAL
    normalized = value.strip().lower()
    for subcategory in Subcategory:
        if subcategory.value.lower() == normalized:
            return subcategory
    raise InvalidMenuItemError(
        f"invalid subcategory: {value}",
        details={"allowed": [subcategory.value for subcategory in Subcategory]},
    )


def _parse_price(value: Decimal, currency: str) -> Money:
    if value < 0:
        raise InvalidMenuItemError("price must be >= 0")
    try:
        return Money.from_decimal(value, currency)
    except ValueError as exc:
        raise InvalidMenuItemError(str(exc)) from exc


class ListCategories:
    def __init__(self, repository: MenuRepository) -> None:
        self._repository = repository

    def execute(self) -> CategoryListResponse:
        return CategoryListResponse(
            categories=[to_category_response(category) for category in self._repository.list_categories()]
        )


class CreateCategory:
    def __init__(self, repository: MenuRepository, cache: CacheStore) -> None:
        self._repository = repository
        self._cache = cache

    def execute(self, request_dto: CategoryRequest) -> CategoryResponse:
        name = request_dto.name.strip()
        if self._repository.find_category_by_name(name) is not None:
            raise DuplicateCategoryError(f"category {name} already exists")
        try:
            category = Category(category_id=None, name=name, display_order=request_dto.display_order)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        try:
            persisted = self._repository.add_category(category)
        except DuplicateKeyError as exc:
            raise DuplicateCategoryError(f"category {name} already exists") from exc
        invalidate_menu_cache(self._cache)
        return to_category_response(persisted)


class UpdateCategory:
    def __init__(self, repository: MenuRepository, cache: CacheStore) -> None:
        self._repository = repository
        self._cache = cache

    def execute(self, category_id: CategoryId, request_dto: CategoryRequest) -> CategoryResponse:
        category = self._repository.get_category(category_id)
        if category is None:
            raise CategoryNotFoundError(f"category {category_id} not found")

        name = request_dto.name.strip()
        existing = self._repository.find_category_by_name(name)
        if existing is not None and existing.category_id != category_id:
            raise DuplicateCategoryError(f"category {name} already exists")
        try:
            updated = replace(category, name=name, display_order=request_dto.display_order)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        try:
            persisted = self._repository.update_category(updated)
        except DuplicateKeyError as exc:
            raise DuplicateCategoryError(f"category {name} already exists") from exc
        invalidate_menu_cache(self._cache)
        return to_category_response(persisted)


class DeleteCategory:
    def __init__(self, repository: MenuRepository, cache: CacheStore) -> None:
        self._repository = repository
        self._cache = cache

    def execute(self, category_id: CategoryId) -> None:
        if self._repository.get_category(category_id) is None:
            raise CategoryNotFoundError(f"category {category_id} not found")
        if self._repository.category_has_items(category_id):
            raise CategoryInUseError(f"category {category_id} still has menu items")
        try:
            self._repository.delete_category(category_id)
        except EntityInUseError as exc:
            raise CategoryInUseError(f"category {category_id} still has menu items") from exc
        invalidate_menu_cache(self._cache)
        logger.info("menu_category_deleted", extra={"category_id": category_id})


class ListMenuItems:
    def __init__(self, repository: MenuRepository) -> None:
        self._repository = repository

    def execute(self) -> MenuItemListResponse:
        return MenuItemListResponse(
            items=[to_menu_item_response(item) for item in self._repository.list_items(available_only=False)]
        )


class GetMenuItem:
    def __init__(self, repository: MenuRepository) -> None:
        self._repository = repository

    def execute(self, item_id: MenuItemId) -> MenuItemResponse:
        item = self._repository.get_item(item_id)
        if item is None:
            raise MenuItemNotFoundError(f"menu item {item_id} not found")
        return to_menu_item_response(item)


class CreateMenuItem:
    def __init__(self, repository: MenuRepository, cache: CacheStore, currency: str) -> None:
        self._repository = repository
        self._cache = cache
        self._currency = currency

    def execute(self, request_dto: MenuItemRequest) -> MenuItemResponse:
        category_id = CategoryId(request_dto.category_id)
        if self._repository.get_category(category_id) is None:
            raise InvalidMenuItemError(f"category {category_id} does not exist")

        now = datetime.now(timezone.utc)
        try:
            item = MenuItem(
                item_id=None,
                name=request_dto.name.strip(),
                price_money=_parse_price(request_dto.price, self._currency),
                category_id=category_id,
                is_available=request_dto.is_available,
                subcategory=_parse_subcategory(request_dto.subcategory),
                icon=request_dto.icon or DEFAULT_ICON,
                created_at=now,
                updated_at=now,
            )
        except ValueError as exc:
            raise InvalidMenuItemError(str(exc)) from exc

        persisted = self._repository.add_item(item)
        invalidate_menu_cache(self._cache)
        logger.info("menu_item_created", extra={"menu_item_id": persisted.item_id})
        return to_menu_item_response(persisted)


class UpdateMenuItem:
    def __init__(self, repository: MenuRepository, cache: CacheStore, currency: str) -> None:
        self._repository = repository
        self._cache = cache
        self._currency = currency

    def execute(self, item_id: MenuItemId, request_dto: MenuItemRequest) -> MenuItemResponse:
        item = self._repository.get_item(item_id)
        if item is None:
            raise MenuItemNotFoundError(f"menu item {item_id} not found")

        category_id = CategoryId(request_dto.category_id)
        if self._repository.get_category(category_id) is None:
            raise InvalidMenuItemError(f"category {category_id} does not exist")

        try:
            updated = replace(
                item,
                name=request_dto.name.strip(),
                price_money=_parse_price(request_dto.price, self._currency),
                category_id=category_id,
                is_available=request_dto.is_available,
                subcategory=_parse_subcategory(request_dto.subcategory),
                icon=request_dto.icon or item.icon,
                updated_at=datetime.now(timezone.utc),
            )
        except ValueError as exc:
            raise InvalidMenuItemError(str(exc)) from exc

        persisted = self._repository.update_item(updated)
        invalidate_menu_cache(self._cache)
        return to_menu_item_response(persisted)


class DeleteMenuItem:
    def __init__(self, repository: MenuRepository, cache: CacheStore) -> None:
        self._repository = repository
        self._cache = cache

    def execute(self, item_id: MenuItemId) -> None:
        if self._repository.get_item(item_id) is None:
            raise MenuItemNotFoundError(f"menu item {item_id} not found")
        if self._repository.item_is_referenced(item_id):
            raise MenuItemInUseError(f"menu item {item_id} is referenced by existing orders")
        try:
            self._repository.delete_item(item_id)
        except EntityInUseError as exc:
            raise MenuItemInUseError(f"menu item {item_id} is referenced by existing orders") from exc
        invalidate_menu_cache(self._cache)
        logger.info("menu_item_deleted", extra={"menu_item_id": item_id})
