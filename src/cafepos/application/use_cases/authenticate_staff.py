from __future__ import annotations

from cafepos.application.errors import AuthError, ForbiddenError
from cafepos.application.ports.repositories import StaffRepository
from cafepos.domain.common.ids import StaffId
from cafepos.domain.staff.entities import Staff, StaffRole


class MissingStaffIdentityError(AuthError):
    pass


class UnknownStaffError(AuthError):
    pass


class RoleNotAllowedError(ForbiddenError):
    pass


class AuthenticateStaff:
    """Resolve the acting staff member from the caller-supplied id and check its role."""

    def __init__(self, staff_repository: StaffRepository) -> None:
        self._staff_repository = staff_repository

    def execute(
        self,
        raw_staff_id: str | None,
        allowed_roles: frozenset[StaffRole] | None = None,
    ) -> Staff:
        if raw_staff_id is None or not raw_staff_id.strip():
            raise MissingStaffIdentityError("staff identity is required")
        try:
            staff_id = StaffId(int(raw_staff_id.strip()))
        except ValueError as exc:
            raise UnknownStaffError(f"invalid staff id: {raw_staff_id}") from exc

        staff = self._staff_repository.get(staff_id)
        if staff is None or not staff.is_active:
            raise UnknownStaffError("unknown or inactive staff member")

        if allowed_roles is not None and not staff.has_any_role(allowed_roles):
            raise RoleNotAllowedError(
                f"role {staff.role.value} is not allowed to perform this action",
                details={"allowed": sorted(role.value for role in allowed_roles)},
            )
        return staff
