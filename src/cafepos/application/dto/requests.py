from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class OrderItemRequest(CamelBaseModel):
    menu_item_id: int
    quantity: int
    modifiers: list[str] | None = None
    notes: str | None = None


class CreateOrderRequest(CamelBaseModel):
    table_id: int
    items: list[OrderItemRequest] = Field(default_factory=list)
    notes: str | None = None


class UpdateOrderStatusRequest(CamelBaseModel):
    status: str


class RecordPaymentRequest(CamelBaseModel):
    payment_method: str = Field(min_length=1)
    amount: Decimal
    transaction_id: str | None = None


class CreateTableRequest(CamelBaseModel):
    number: str = Field(min_length=1)
    zone: str = Field(min_length=1)
    seats: int

    @field_validator("number", mode="before")
    @classmethod
    def _number_as_text(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class UpdateTableRequest(CreateTableRequest):
    status: str | None = None


class UpdateTableStatusRequest(CamelBaseModel):
    status: str


class CategoryRequest(CamelBaseModel):
    name: str = Field(min_length=1)
    display_order: int = 0


class MenuItemRequest(CamelBaseModel):
    name: str = Field(min_length=1)
    price: Decimal
    category_id: int
    subcategory: str | None = None
    icon: str | None = None
    is_available: bool = True
