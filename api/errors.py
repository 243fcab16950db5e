"""Global exception handlers for FastAPI.

Every failure leaves as the unified error envelope; unexpected ones are
logged and reported as INTERNAL_ERROR.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from api.base import error_json, ErrorCodes
from auth.exceptions import (
    AuthError,
    AccountExistsError,
    AccountNotFoundError,
    EmailDomainNotAllowedError,
    ForbiddenError,
    InvalidOTPError,
    InvalidTokenError,
    NotAuthenticatedError,
    OTPDeliveryError,
)
from clients.storage_client import StorageError
from core.exceptions import CatalogError, MaterialNotFoundError, MaterialValidationError

logger = logging.getLogger(__name__)

# Most specific first; first isinstance match wins
_ERROR_MAP: list[tuple[type[Exception], int, str]] = [
    (InvalidOTPError, 400, ErrorCodes.INVALID_OTP),
    (AccountExistsError, 400, ErrorCodes.ALREADY_EXISTS),
    (EmailDomainNotAllowedError, 400, ErrorCodes.DOMAIN_NOT_ALLOWED),
    (AccountNotFoundError, 404, ErrorCodes.NOT_FOUND),
    (NotAuthenticatedError, 401, ErrorCodes.NOT_AUTHENTICATED),
    (InvalidTokenError, 401, ErrorCodes.INVALID_TOKEN),
    (ForbiddenError, 403, ErrorCodes.FORBIDDEN),
    (OTPDeliveryError, 502, ErrorCodes.DELIVERY_FAILED),
    (MaterialNotFoundError, 404, ErrorCodes.NOT_FOUND),
    (MaterialValidationError, 400, ErrorCodes.INVALID_REQUEST),
]


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(AuthError)
    @app.exception_handler(CatalogError)
    async def domain_error_handler(request: Request, exc: Exception):
        for exc_type, status_code, code in _ERROR_MAP:
            if isinstance(exc, exc_type):
                headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
                return error_json(status_code, code, str(exc), headers=headers)
        logger.warning(f"Unmapped domain error {type(exc).__name__}: {exc}")
        return error_json(400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_json(400, ErrorCodes.VALIDATION_ERROR, _format_validation_errors(exc))

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
        return error_json(500, ErrorCodes.STORAGE_ERROR, "File storage failed")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return error_json(500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
