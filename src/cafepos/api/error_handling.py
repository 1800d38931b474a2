from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cafepos.api.middleware.request_id import get_request_id
from cafepos.application.errors import (
    AlreadyPaidError,
    AuthError,
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from cafepos.application.use_cases.authenticate_staff import (
    MissingStaffIdentityError,
    RoleNotAllowedError,
    UnknownStaffError,
)
from cafepos.application.use_cases.create_order import (
    InvalidQuantityError,
    MenuItemUnavailableError,
    OrderNumberExhaustedError,
    OrderTooLargeError,
    TableBusyError,
    TableHasActiveOrderError,
    TableIsFullError,
)
from cafepos.application.use_cases.get_order import InvalidOrderFilterError, OrderNotFoundError
from cafepos.application.use_cases.list_tables import TableNotFoundError
from cafepos.application.use_cases.manage_menu import (
    CategoryInUseError,
    CategoryNotFoundError,
    DuplicateCategoryError,
    MenuItemInUseError,
    MenuItemNotFoundError,
)
from cafepos.application.use_cases.manage_tables import (
    DuplicateTableNumberError,
    TableConflictError,
    TableInUseError,
)
from cafepos.application.use_cases.record_payment import (
    InvalidPaymentAmountError,
    OrderAlreadyPaidForError,
    PaymentConflictError,
    PaymentOnCancelledOrderError,
)
from cafepos.application.use_cases.reports import InvalidReportPeriodError
from cafepos.application.use_cases.update_order_status import (
    DisallowedOrderTransitionError,
    InvalidOrderStatusError,
    OrderConflictError,
)

logger = logging.getLogger(__name__)


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": message,
            "code": code,
            "details": jsonable_encoder(details or {}),
            "requestId": get_request_id(),
        },
    )


def _exception_handler(status_code: int, code: str):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        details = getattr(exc, "details", None)
        logger.info("request_rejected", extra={"status_code": status_code, "error_code": code})
        return _error_response(
            status_code=status_code,
            code=code,
            message=str(exc),
            details=details if isinstance(details, dict) else None,
        )

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    code = "HTTP_ERROR"
    if http_exc.status_code == 404:
        code = "NOT_FOUND"
    elif http_exc.status_code == 405:
        code = "METHOD_NOT_ALLOWED"
    elif http_exc.status_code == 400:
        code = "BAD_REQUEST"
    return _error_response(
        status_code=http_exc.status_code,
        code=code,
        message=message,
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": validation_exc.errors()},
    )


async def _unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", exc_info=(type(exc), exc, exc.__traceback__))
    return _error_response(status_code=500, code="INTERNAL_ERROR", message="internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    # Starlette resolves handlers along the exception MRO, so the specific
    # entries win over the taxonomy fallbacks at the bottom.
    mappings: list[tuple[type[Exception], int, str]] = [
        (OrderNotFoundError, 404, "ORDER_NOT_FOUND"),
        (TableNotFoundError, 404, "TABLE_NOT_FOUND"),
        (MenuItemNotFoundError, 404, "MENU_ITEM_NOT_FOUND"),
        (CategoryNotFoundError, 404, "CATEGORY_NOT_FOUND"),
        (TableIsFullError, 400, "TABLE_FULL"),
        (MenuItemUnavailableError, 400, "MENU_ITEM_UNAVAILABLE"),
        (InvalidQuantityError, 400, "INVALID_QUANTITY"),
        (OrderTooLargeError, 400, "ORDER_TOO_LARGE"),
        (TableHasActiveOrderError, 409, "TABLE_HAS_ACTIVE_ORDER"),
        (TableBusyError, 409, "TABLE_BUSY"),
        (OrderNumberExhaustedError, 409, "ORDER_NUMBER_EXHAUSTED"),
        (InvalidOrderFilterError, 400, "INVALID_ORDER_FILTER"),
        (InvalidOrderStatusError, 400, "INVALID_ORDER_STATUS"),
        (DisallowedOrderTransitionError, 409, "INVALID_ORDER_TRANSITION"),
        (OrderConflictError, 409, "ORDER_CONFLICT"),
        (InvalidPaymentAmountError, 400, "INVALID_PAYMENT_AMOUNT"),
        (OrderAlreadyPaidForError, 400, "ORDER_ALREADY_PAID"),
        (PaymentOnCancelledOrderError, 409, "ORDER_CANCELLED"),
        (PaymentConflictError, 409, "PAYMENT_CONFLICT"),
        (DuplicateTableNumberError, 400, "DUPLICATE_TABLE_NUMBER"),
        (TableInUseError, 409, "TABLE_IN_USE"),
        (TableConflictError, 409, "TABLE_CONFLICT"),
        (DuplicateCategoryError, 400, "DUPLICATE_CATEGORY"),
        (CategoryInUseError, 409, "CATEGORY_IN_USE"),
        (MenuItemInUseError, 409, "MENU_ITEM_IN_USE"),
        (InvalidReportPeriodError, 400, "INVALID_REPORT_PERIOD"),
        (MissingStaffIdentityError, 401, "STAFF_IDENTITY_REQUIRED"),
        (UnknownStaffError, 401, "UNKNOWN_STAFF"),
        (RoleNotAllowedError, 403, "ROLE_NOT_ALLOWED"),
        (ValidationError, 400, "VALIDATION_ERROR"),
        (UnavailableError, 400, "UNAVAILABLE"),
        (AlreadyPaidError, 400, "ALREADY_PAID"),
        (NotFoundError, 404, "NOT_FOUND"),
        (ConflictError, 409, "CONFLICT"),
        (InvalidTransitionError, 409, "INVALID_TRANSITION"),
        (AuthError, 401, "UNAUTHORIZED"),
        (ForbiddenError, 403, "FORBIDDEN"),
    ]

    for exc_cls, status_code, code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code, code))

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
