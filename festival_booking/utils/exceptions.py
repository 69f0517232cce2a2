"""Booking error taxonomy and the FastAPI handlers that render it.

Every error a caller can recover from is a ``BookingError`` carrying a
stable code, the HTTP status it maps to and a user-safe message.
"""

import logging
from enum import Enum

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    INVALID_VALUE = "InvalidValue"
    UNKNOWN_REFERENCE = "UnknownReference"
    NOT_FOUND = "NotFound"
    INSUFFICIENT_STOCK = "InsufficientStock"
    ILLEGAL_TRANSITION = "IllegalTransition"
    INVOICE_ALREADY_EXISTS = "InvoiceAlreadyExists"
    ZONE_IN_USE = "ZoneInUse"
    RESERVATION_LOCKED = "ReservationLocked"


class BookingError(Exception):
    """Base error with code and user-safe message."""

    code: ErrorCode
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class MissingRequiredField(BookingError):
    code = ErrorCode.MISSING_REQUIRED_FIELD


class InvalidValue(BookingError):
    code = ErrorCode.INVALID_VALUE


class UnknownReference(BookingError):
    code = ErrorCode.UNKNOWN_REFERENCE


class NotFound(BookingError):
    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientStock(BookingError):
    """Raised when a zone cannot cover the requested tables.

    Losing a race for the last tables is reported the same way as plain
    exhaustion.
    """

    code = ErrorCode.INSUFFICIENT_STOCK
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, zone_id: str, requested: int) -> None:
        super().__init__(f"Not enough tables available in zone {zone_id} for {requested} requested")
        self.zone_id = zone_id
        self.requested = requested


class IllegalTransition(BookingError):
    code = ErrorCode.ILLEGAL_TRANSITION
    status_code = status.HTTP_409_CONFLICT


class InvoiceAlreadyExists(BookingError):
    code = ErrorCode.INVOICE_ALREADY_EXISTS
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, reservation_id: str) -> None:
        super().__init__(f"An invoice already exists for reservation {reservation_id}")
        self.reservation_id = reservation_id


class ZoneInUse(BookingError):
    code = ErrorCode.ZONE_IN_USE
    status_code = status.HTTP_409_CONFLICT


class ReservationLocked(BookingError):
    code = ErrorCode.RESERVATION_LOCKED
    status_code = status.HTTP_409_CONFLICT


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    logger.info(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code.value, "detail": exc.message},
    )


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "InternalError", "detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)
