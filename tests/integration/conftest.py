from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from cafepos.api.main import create_app
from cafepos.infrastructure.db.models.menu import MenuItemModel
from cafepos.infrastructure.db.models.staff import StaffModel
from cafepos.infrastructure.db.models.table import TableModel
from cafepos.infrastructure.db.schema import create_schema
from cafepos.infrastructure.db.session import create_database_engine
from cafepos.tools.seed import seed


@pytest.fixture
def engine(tmp_path: Path, monkeypatch) -> Iterator[Engine]:
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.delenv("POS_PAYMENT_ACCRUAL", raising=False)
    monkeypatch.delenv("POS_GST_RATE", raising=False)
    monkeypatch.delenv("GST_RATE", raising=False)
    monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "")

    db_engine = create_database_engine(f"sqlite:///{tmp_path / 'cafepos.db'}")
    create_schema(db_engine)
    seed(db_engine)
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def client(engine: Engine) -> TestClient:
    return TestClient(create_app(engine=engine))


def _staff_header(engine: Engine, employee_id: str) -> dict[str, str]:
    with Session(engine) as session:
        staff_id = session.execute(
            select(StaffModel.id).where(StaffModel.employee_id == employee_id)
        ).scalar_one()
    return {"X-Staff-Id": str(staff_id)}


@pytest.fixture
def admin_headers(engine: Engine) -> dict[str, str]:
    return _staff_header(engine, "0001")


@pytest.fixture
def waiter_headers(engine: Engine) -> dict[str, str]:
    return _staff_header(engine, "0002")


@pytest.fixture
def cashier_headers(engine: Engine) -> dict[str, str]:
    return _staff_header(engine, "0003")


@pytest.fixture
def table_id(engine: Engine) -> Callable[[str], int]:
    def _lookup(number: str) -> int:
        with Session(engine) as session:
            return session.execute(select(TableModel.id).where(TableModel.number == number)).scalar_one()

    return _lookup


@pytest.fixture
def menu_item_id(engine: Engine) -> Callable[[str], int]:
    def _lookup(name: str) -> int:
        with Session(engine) as session:
            return session.execute(select(MenuItemModel.id).where(MenuItemModel.name == name)).scalar_one()

    return _lookup
