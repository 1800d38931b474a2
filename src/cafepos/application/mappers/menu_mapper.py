from __future__ import annotations

from cafepos.application.dto.responses import (
    CategoryResponse,
    MenuCategoryGroupResponse,
    MenuItemResponse,
    MenuResponse,
)
from cafepos.application.mappers.money_mapper import to_money_response
from cafepos.domain.menu.entities import Category, MenuItem


def to_category_response(category: Category) -> CategoryResponse:
    if category.category_id is None:
        raise ValueError("category must be persisted before it is mapped")
    return CategoryResponse(
        categoryId=int(category.category_id),
        name=category.name,
        displayOrder=category.display_order,
    )


def to_menu_item_response(item: MenuItem) -> MenuItemResponse:
    if item.item_id is None:
        raise ValueError("menu item must be persisted before it is mapped")
    return MenuItemResponse(
        itemId=int(item.item_id),
        name=item.name,
        priceMoney=to_money_response(item.price_money),
        categoryId=int(item.category_id),
        categoryName=item.category_name,
        subcategory=item.subcategory.value,
        icon=item.icon,
        isAvailable=item.is_available,
        createdAt=item.created_at,
        updatedAt=item.updated_at,
    )


def to_menu_response(items: list[MenuItem], version: str) -> MenuResponse:
    """Group items by category, keeping the order the repository returned them in."""
    groups: dict[int, MenuCategoryGroupResponse] = {}
    for item in items:
        key = int(item.category_id)
        group = groups.get(key)
        if group is None:
            group = MenuCategoryGroupResponse(
                categoryId=key,
                category=item.category_name or "",
            )
            groups[key] = group
        group.items.append(to_menu_item_response(item))
    return MenuResponse(version=version, categories=list(groups.values()))
