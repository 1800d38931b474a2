from __future__ import annotations

from typing import NewType

CategoryId = NewType("CategoryId", int)
MenuItemId = NewType("MenuItemId", int)
TableId = NewType("TableId", int)
OrderId = NewType("OrderId", int)
OrderLineId = NewType("OrderLineId", int)
PaymentId = NewType("PaymentId", int)
StaffId = NewType("StaffId", int)
