from __future__ import annotations

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from cafepos.application.ports.repositories import StaffRepository
from cafepos.domain.common.ids import StaffId
from cafepos.domain.staff.entities import Staff, StaffRole, StaffStatus
from cafepos.infrastructure.db.models.staff import StaffModel
from cafepos.infrastructure.db.session import get_engine


class SqlAlchemyStaffRepository(StaffRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, staff_id: StaffId) -> Staff | None:
        with Session(self._engine) as session:
            model = session.get(StaffModel, staff_id)
            if model is None:
                return None
            return Staff(
                staff_id=StaffId(model.id),
                name=model.name,
                employee_id=model.employee_id,
                role=StaffRole(model.role),
                status=StaffStatus(model.status),
            )
