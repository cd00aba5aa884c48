"""
Error types and standardized error responses.

Feature code raises AppError subclasses; the handlers registered by
`register_exception_handlers` turn them into the common payload:

    {"error": {"code": "NOT_FOUND", "message": "...", "details": {...},
               "correlation_id": "abc123"}}

Routes that catch unexpected exceptions keep raising HTTPException(500)
directly.
"""

from enum import Enum
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.shared.correlation import get_correlation_id


class ErrorCode(str, Enum):
    """Error codes returned in error payloads."""

    # Client errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    RATE_LIMITED = "RATE_LIMITED"

    # Server errors (5xx)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[dict[str, Any]] = None
    correlation_id: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


# =========================================================================
# EXCEPTIONS
# =========================================================================

class AppError(Exception):
    """Base class for errors that map to a structured HTTP response."""

    code = ErrorCode.INTERNAL_ERROR
    status_code = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailedError(AppError):
    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class UnauthorizedError(AppError):
    code = ErrorCode.UNAUTHORIZED
    status_code = 401


class NotFoundError(AppError):
    code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, resource_type: str, resource_id: Optional[str] = None):
        details = {"resource_type": resource_type}
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(f"{resource_type.capitalize()} not found", details)


class RateLimitedError(AppError):
    code = ErrorCode.RATE_LIMITED
    status_code = 429

    def __init__(self, message: str = "Too many requests", retry_after: Optional[int] = None):
        super().__init__(message, {"retry_after_seconds": retry_after} if retry_after else None)
        self.retry_after = retry_after


class DatabaseError(AppError):
    code = ErrorCode.DATABASE_ERROR
    status_code = 500

    def __init__(self, message: str = "Database operation failed", operation: Optional[str] = None):
        super().__init__(message, {"operation": operation} if operation else None)


class ExternalServiceError(AppError):
    code = ErrorCode.EXTERNAL_SERVICE_ERROR
    status_code = 502

    def __init__(self, service_name: str, message: str, status_code: Optional[int] = None):
        super().__init__(message, {"service": service_name})
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(AppError):
    code = ErrorCode.CONFIGURATION_ERROR
    status_code = 500


class TokenEncryptionError(AppError):
    code = ErrorCode.INTERNAL_ERROR
    status_code = 500


# =========================================================================
# RESPONSES
# =========================================================================

def error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> JSONResponse:
    """Build the standardized JSON error response."""
    error_detail = ErrorDetail(
        code=code.value,
        message=message,
        details=details,
        correlation_id=correlation_id,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": error_detail.model_dump(exclude_none=True)},
    )


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", None) or get_correlation_id()
    response = error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        correlation_id=correlation_id,
    )
    if isinstance(exc, RateLimitedError) and exc.retry_after:
        response.headers["Retry-After"] = str(exc.retry_after)
    return response


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Invalid request",
        status_code=400,
        details={"errors": errors},
        correlation_id=getattr(request.state, "correlation_id", None) or get_correlation_id(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
