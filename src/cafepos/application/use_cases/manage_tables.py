from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from cafepos.application.dto.requests import (
    CreateTableRequest,
    UpdateTableRequest,
    UpdateTableStatusRequest,
)
from cafepos.application.dto.responses import TableResponse
from cafepos.application.errors import ConflictError, ValidationError
from cafepos.application.mappers.table_mapper import to_table_response
from cafepos.application.metrics.order_lifecycle import record_table_delete_blocked
from cafepos.application.ports.repositories import (
    ActiveOrderExistsError,
    DuplicateKeyError,
    OptimisticConcurrencyError,
    TableRepository,
)
from cafepos.application.use_cases.list_tables import TableNotFoundError
from cafepos.domain.common.ids import TableId
from cafepos.domain.table.entities import (
    Table,
    TableStatus,
    UnknownTableStatusError,
    parse_table_status,
)

logger = logging.getLogger(__name__)


class InvalidTableError(ValidationError):
    pass


class DuplicateTableNumberError(ValidationError):
    pass


class TableInUseError(ConflictError):
    pass


class TableConflictError(ConflictError):
    pass


def _parse_status(value: str) -> TableStatus:
    try:
        return parse_table_status(value)
    except UnknownTableStatusError as exc:
        raise InvalidTableError(
            str(exc),
            details={"allowed": [status.value for status in TableStatus]},
        ) from exc


class CreateTable:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, request_dto: CreateTableRequest) -> TableResponse:
        number = request_dto.number.strip()
        if self._table_repository.find_by_number(number) is not None:
            raise DuplicateTableNumberError(f"table number {number} already exists")

        now = datetime.now(timezone.utc)
        try:
            table = Table(
                table_id=None,
                number=number,
                zone=request_dto.zone.strip(),
                seats=request_dto.seats,
                created_at=now,
                updated_at=now,
            )
        except ValueError as exc:
            raise InvalidTableError(str(exc)) from exc

        try:
            persisted = self._table_repository.add(table)
        except DuplicateKeyError as exc:
            raise DuplicateTableNumberError(f"table number {number} already exists") from exc
        logger.info("table_created", extra={"table_id": persisted.table_id, "zone": persisted.zone})
        return to_table_response(persisted)


class UpdateTable:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, table_id: TableId, request_dto: UpdateTableRequest) -> TableResponse:
        table = self._table_repository.get(table_id)
        if table is None:
            raise TableNotFoundError(f"table {table_id} not found")

        number = request_dto.number.strip()
        existing = self._table_repository.find_by_number(number)
        if existing is not None and existing.table_id != table_id:
            raise DuplicateTableNumberError(f"table number {number} already exists")

        status = table.status
        if request_dto.status is not None:
            status = _parse_status(request_dto.status)

        try:
            updated = replace(
                table,
                number=number,
                zone=request_dto.zone.strip(),
                seats=request_dto.seats,
                status=status,
                updated_at=datetime.now(timezone.utc),
            )
        except ValueError as exc:
            raise InvalidTableError(str(exc)) from exc

        return to_table_response(_save_table(self._table_repository, updated))


class UpdateTableStatus:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, table_id: TableId, request_dto: UpdateTableStatusRequest) -> TableResponse:
        status = _parse_status(request_dto.status)
        table = self._table_repository.get(table_id)
        if table is None:
            raise TableNotFoundError(f"table {table_id} not found")

        updated = table.with_status(status, datetime.now(timezone.utc))
        persisted = _save_table(self._table_repository, updated)
        logger.info(
            "table_status_overridden",
            extra={"table_id": table_id, "table_status": status.value},
        )
        return to_table_response(persisted)


def _save_table(table_repository: TableRepository, table: Table) -> Table:
    try:
        return table_repository.update(table)
    except DuplicateKeyError as exc:
        raise DuplicateTableNumberError(f"table number {table.number} already exists") from exc
    except OptimisticConcurrencyError as exc:
        raise TableConflictError(f"table {table.table_id} was modified concurrently") from exc


class DeleteTable:
    def __init__(self, table_repository: TableRepository) -> None:
        self._table_repository = table_repository

    def execute(self, table_id: TableId) -> None:
        table = self._table_repository.get(table_id)
        if table is None:
            raise TableNotFoundError(f"table {table_id} not found")

        try:
            self._table_repository.delete(table_id, expected_version=table.version)
        except ActiveOrderExistsError as exc:
            record_table_delete_blocked()
            raise TableInUseError(
                f"table {table.number} has an active order and cannot be deleted",
                details={"reason": "HAS_ACTIVE_ORDER"},
            ) from exc
        except OptimisticConcurrencyError as exc:
            raise TableConflictError(f"table {table.number} was modified concurrently") from exc
        logger.info("table_deleted", extra={"table_id": table_id})
