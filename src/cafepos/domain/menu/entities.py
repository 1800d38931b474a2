from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from cafepos.domain.common.ids import CategoryId, MenuItemId
from cafepos.domain.common.money import Money


class Subcategory(str, Enum):
    SPECIAL = "Special"
    STRONG = "Strong"
    LESS_SUGAR = "Less Sugar"
    NORMAL = "Normal"


DEFAULT_ICON = "🍽️"


@dataclass(frozen=True)
class Category:
    category_id: CategoryId | None
    name: str
    display_order: int = 0

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("category name must be non-empty")


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId | None
    name: str
    price_money: Money
    category_id: CategoryId
    is_available: bool = True
    subcategory: Subcategory = Subcategory.NORMAL
    icon: str = DEFAULT_ICON
    category_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")

    def ensure_orderable(self) -> None:
        if not self.is_available:
            raise MenuItemNotOrderableError(f"menu item {self.item_id} is unavailable")


class MenuItemNotOrderableError(Exception):
    pass
