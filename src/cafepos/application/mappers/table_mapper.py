from __future__ import annotations

from cafepos.application.dto.responses import CountResponse, TableResponse, TableSummaryResponse
from cafepos.application.mappers.money_mapper import cents_response
from cafepos.application.ports.repositories import TableDetails, TableStatusSummary
from cafepos.domain.table.entities import Table


def to_table_response(table: Table) -> TableResponse:
    if table.table_id is None:
        raise ValueError("table must be persisted before it is mapped")
    return TableResponse(
        tableId=int(table.table_id),
        number=table.number,
        zone=table.zone,
        seats=table.seats,
        status=table.status.value,
        createdAt=table.created_at,
        updatedAt=table.updated_at,
    )


def to_table_details_response(details: TableDetails, currency: str) -> TableResponse:
    response = to_table_response(details.table)
    if details.current_order_id is None:
        return response
    return response.model_copy(
        update={
            "currentOrderId": int(details.current_order_id),
            "currentOrderNumber": details.current_order_number,
            "currentOrderTotal": cents_response(details.current_order_total_cents, currency),
        }
    )


def to_table_summary_response(summary: TableStatusSummary) -> TableSummaryResponse:
    return TableSummaryResponse(
        totalTables=summary.total_tables,
        occupiedTables=summary.occupied_tables,
        availableTables=summary.available_tables,
        byStatus=[CountResponse(key=row.key, count=row.count) for row in summary.by_status],
        byZone=[CountResponse(key=row.key, count=row.count) for row in summary.by_zone],
    )
