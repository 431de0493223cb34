# hall_booking/errors.py
"""
Domain errors raised by the booking core.

Each error carries an HTTP status so the API layer can render it without
knowing which component raised it.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base class for every error the core raises on purpose."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "booking_error"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}


class ValidationError(BookingError):
    """Malformed input, e.g. start time not before end time."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "validation_error"


class ConflictError(BookingError):
    """The requested slot overlaps a booking that is not rejected."""

    status_code = status.HTTP_409_CONFLICT
    default_code = "already_booked"


class AuthenticationError(BookingError):
    """Wrong email or password at login."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_code = "invalid_credentials"


class AuthorizationError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "forbidden"


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"


class ConfigurationError(BookingError):
    """Server-side setup problem (e.g. no ADMIN department seeded)."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "configuration_error"


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if isinstance(exc, ConfigurationError):
        logger.error("Configuration error on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
