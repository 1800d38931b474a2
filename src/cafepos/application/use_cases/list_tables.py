from __future__ import annotations

from cafepos.application.dto.responses import TableListResponse, TableResponse, TableSummaryResponse
from cafepos.application.errors import NotFoundError
from cafepos.application.mappers.table_mapper import (
    to_table_details_response,
    to_table_summary_response,
)
from cafepos.application.ports.repositories import TableRepository
from cafepos.domain.common.ids import TableId


class TableNotFoundError(NotFoundError):
    pass


class ListTables:
    def __init__(self, table_repository: TableRepository, currency: str) -> None:
        self._table_repository = table_repository
        self._currency = currency

    def execute(self) -> TableListResponse:
        return TableListResponse(
            tables=[
                to_table_details_response(details, self._currency)
                for details in self._table_repository.list_details()
            ]
        )


class GetTable:
    def __init__(self, table_repository: TableRepository, currency: str) -> None:
        self._table_repository = table_repository
        self._currency = currency

    def execute(self, table_id: TableId) -> TableResponse:
        details = self._table_repository.get_details(table_id)
        if details is None:
            raise TableNotFoundError(f"table {table_id} not found")
        return to_table_details_response(details, self._currency)


class GetTableSummary:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self) -> TableSummaryResponse:
        return to_table_summary_response(self._table_repository.summarize())
