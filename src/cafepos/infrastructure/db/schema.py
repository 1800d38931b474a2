from __future__ import annotations

from sqlalchemy import Engine

from cafepos.infrastructure.db.models.menu import Base
from cafepos.infrastructure.db.models.order import OrderLineModel, OrderModel, PaymentModel
from cafepos.infrastructure.db.models.staff import StaffModel
from cafepos.infrastructure.db.models.table import TableModel

# Importing the model modules registers every table on Base.metadata.
MODELS = (OrderModel, OrderLineModel, PaymentModel, StaffModel, TableModel)

metadata = Base.metadata


def create_schema(engine: Engine) -> None:
    metadata.create_all(engine)
