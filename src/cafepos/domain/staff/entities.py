from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cafepos.domain.common.ids import StaffId


class StaffRole(str, Enum):
    ADMIN = "Admin"
    WAITER = "Waiter"
    CASHIER = "Cashier"


class StaffStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


@dataclass(frozen=True)
class Staff:
    staff_id: StaffId
    name: str
    employee_id: str
    role: StaffRole
    status: StaffStatus = StaffStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == StaffStatus.ACTIVE

    def has_any_role(self, roles: frozenset[StaffRole]) -> bool:
        return self.role in roles
