from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import Engine

from cafepos.api.dependencies import current_staff, get_db_engine, pos_currency
from cafepos.application.dto.requests import (
    CreateTableRequest,
    UpdateTableRequest,
    UpdateTableStatusRequest,
)
from cafepos.application.dto.responses import TableListResponse, TableResponse, TableSummaryResponse
from cafepos.application.use_cases.list_tables import GetTable, GetTableSummary, ListTables
from cafepos.application.use_cases.manage_tables import (
    CreateTable,
    DeleteTable,
    UpdateTable,
    UpdateTableStatus,
)
from cafepos.domain.common.ids import TableId
from cafepos.domain.staff.entities import Staff
from cafepos.infrastructure.db.repositories.table_repo import SqlAlchemyTableRepository

router = APIRouter(prefix="/tables", tags=["tables"])


@router.get("", response_model=TableListResponse)
def list_tables(
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(current_staff),
) -> TableListResponse:
    use_case = ListTables(table_repository=SqlAlchemyTableRepository(engine), currency=pos_currency())
    return use_case.execute()


@router.get("/stats/summary", response_model=TableSummaryResponse)
def table_summary(
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(current_staff),
) -> TableSummaryResponse:
    return GetTableSummary(table_repository=SqlAlchemyTableRepository(engine)).execute()


@router.get("/{table_id}", response_model=TableResponse)
def get_table(
    table_id: int,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(current_staff),
) -> TableResponse:
    use_case = GetTable(table_repository=SqlAlchemyTableRepository(engine), currency=pos_currency())
    return use_case.execute(TableId(table_id))


@router.post("", response_model=TableResponse, status_code=status.HTTP_201_CREATED)
def create_table(
    request_dto: CreateTableRequest,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(current_staff),
) -> TableResponse:
    return CreateTable(table_repository=SqlAlchemyTableRepository(engine)).execute(request_dto)


@router.put("/{table_id}", response_model=TableResponse)
def update_table(
    table_id: int,
    request_dto: UpdateTableRequest,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(current_staff),
) -> TableResponse:
    use_case = UpdateTable(table_repository=SqlAlchemyTableRepository(engine))
    return use_case.execute(TableId(table_id), request_dto)


@router.put("/{table_id}/status", response_model=TableResponse)
def update_table_status(
    table_id: int,
    request_dto: UpdateTableStatusRequest,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(current_staff),
) -> TableResponse:
    use_case = UpdateTableStatus(table_repository=SqlAlchemyTableRepository(engine))
    return use_case.execute(TableId(table_id), request_dto)


@router.delete("/{table_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_table(
    table_id: int,
    engine: Engine = Depends(get_db_engine),
    _: Staff = Depends(current_staff),
) -> Response:
    DeleteTable(table_repository=SqlAlchemyTableRepository(engine)).execute(TableId(table_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
