"""Response envelope shared by every route, plus the error code vocabulary."""

from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from utils.timezone import now_utc


class APIError(BaseModel):
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")


class APIMeta(BaseModel):
    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Identifier for correlating logs")


class APIResponse(BaseModel):
    """
    {success, data, error, meta} for auth and material routes alike.

    Exactly one of data/error is meaningful, selected by success.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta() -> APIMeta:
    return APIMeta(timestamp=now_utc(), request_id=str(uuid4()))


def success_response(data: Any) -> APIResponse:
    return APIResponse(success=True, data=data, meta=_meta())


def error_response(code: str, message: str) -> APIResponse:
    return APIResponse(success=False, error=APIError(code=code, message=message), meta=_meta())


def error_json(status_code: int, code: str, message: str, headers: dict | None = None) -> JSONResponse:
    """Error envelope as a ready-to-return response (middleware and handlers)."""
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content=error_response(code, message).model_dump(mode="json"),
    )


class ErrorCodes:
    """Values of error.code."""

    # 401 / 403
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    INVALID_TOKEN = "INVALID_TOKEN"
    FORBIDDEN = "FORBIDDEN"

    # 400
    INVALID_OTP = "INVALID_OTP"
    DOMAIN_NOT_ALLOWED = "DOMAIN_NOT_ALLOWED"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # 404
    NOT_FOUND = "NOT_FOUND"

    # 5xx
    DELIVERY_FAILED = "DELIVERY_FAILED"
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
