"""Exception handlers and custom exceptions for the VidShield API.

This module defines API exception classes, maps domain exceptions onto
HTTP responses and registers global handlers for consistent error
envelopes across the API.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidshield.domain.exceptions import (
    BusinessRuleViolation,
    ConcurrentUpdateError,
    DomainException,
    EntityNotFoundError,
    InvalidStateTransition,
    InvalidValueError,
    StorePersistError,
    UnauthorizedOperation,
)

logger = structlog.get_logger(__name__)


class VidShieldException(Exception):
    """Base exception class for the VidShield API."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(VidShieldException):
    """Exception raised for authentication failures."""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTHENTICATION_FAILED",
            details=details,
        )


class AuthorizationError(VidShieldException):
    """Exception raised for authorization failures."""

    def __init__(
        self,
        message: str = "Insufficient permissions",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="AUTHORIZATION_FAILED",
            details=details,
        )


# Order matters: the first matching class wins
DOMAIN_ERROR_MAP: list[tuple[type, int, str]] = [
    (EntityNotFoundError, status.HTTP_404_NOT_FOUND, "RESOURCE_NOT_FOUND"),
    (UnauthorizedOperation, status.HTTP_403_FORBIDDEN, "AUTHORIZATION_FAILED"),
    (InvalidStateTransition, status.HTTP_409_CONFLICT, "INVALID_STATE_TRANSITION"),
    (ConcurrentUpdateError, status.HTTP_409_CONFLICT, "CONCURRENT_UPDATE"),
    (BusinessRuleViolation, status.HTTP_409_CONFLICT, "BUSINESS_RULE_VIOLATION"),
    (InvalidValueError, status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR"),
    (StorePersistError, status.HTTP_503_SERVICE_UNAVAILABLE, "STORE_UNAVAILABLE"),
]


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Create standardized error response format.

    Args:
        status_code: HTTP status code
        message: Error message
        error_code: Application-specific error code
        details: Additional error details
        request_id: Request ID for tracing

    Returns:
        Dict: Standardized error response
    """
    response: Dict[str, Any] = {
        "error": {"code": error_code, "message": message, "status_code": status_code},
        "success": False,
    }

    if details:
        response["error"]["details"] = details

    if request_id:
        response["request_id"] = request_id

    return response


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


async def vidshield_exception_handler(
    request: Request, exc: VidShieldException
) -> JSONResponse:
    """Handle custom API exceptions."""
    request_id = _request_id(request)

    logger.warning(
        "api_error",
        request_id=request_id,
        status_code=exc.status_code,
        error_code=exc.error_code,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            status_code=exc.status_code,
            message=exc.message,
            error_code=exc.error_code,
            details=exc.details,
            request_id=request_id,
        ),
    )


async def domain_exception_handler(
    request: Request, exc: DomainException
) -> JSONResponse:
    """Translate domain exceptions into HTTP errors."""
    request_id = _request_id(request)
    status_code, error_code = status.HTTP_400_BAD_REQUEST, "DOMAIN_ERROR"
    for exc_type, mapped_status, mapped_code in DOMAIN_ERROR_MAP:
        if isinstance(exc, exc_type):
            status_code, error_code = mapped_status, mapped_code
            break

    logger.warning(
        "domain_error",
        request_id=request_id,
        status_code=status_code,
        error_code=error_code,
        error=exc.message,
        path=request.url.path,
        method=request.method,
    )

    details = exc.context.to_dict()
    # Store internals stay out of client responses
    if isinstance(exc, StorePersistError):
        details = {}
    return JSONResponse(
        status_code=status_code,
        content=create_error_response(
            status_code=status_code,
            message=exc.message,
            error_code=error_code,
            details=details,
            request_id=request_id,
        ),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions."""
    request_id = _request_id(request)

    # Map HTTP status codes to error codes
    error_code_mapping = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        413: "PAYLOAD_TOO_LARGE",
        422: "UNPROCESSABLE_ENTITY",
        500: "INTERNAL_SERVER_ERROR",
        503: "SERVICE_UNAVAILABLE",
    }

    error_code = error_code_mapping.get(exc.status_code, "HTTP_ERROR")

    logger.warning(
        "http_error",
        request_id=request_id,
        status_code=exc.status_code,
        error_code=error_code,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(
            status_code=exc.status_code,
            message=str(exc.detail),
            error_code=error_code,
            request_id=request_id,
        ),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    request_id = _request_id(request)

    # Extract field errors
    field_errors = {}
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors[field_path] = {"message": error["msg"], "type": error["type"]}

    logger.warning(
        "request_validation_failed",
        request_id=request_id,
        fields=list(field_errors),
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=create_error_response(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message="Request validation failed",
            error_code="VALIDATION_ERROR",
            details={"field_errors": field_errors},
            request_id=request_id,
        ),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    request_id = _request_id(request)

    logger.exception(
        "unhandled_exception",
        request_id=request_id,
        exception_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )

    # Don't expose internal error details in production
    settings = getattr(request.app.state, "settings", None)
    if settings is not None and settings.is_production:
        message = "Internal server error"
    else:
        message = f"{type(exc).__name__}: {str(exc)}"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=message,
            error_code="INTERNAL_SERVER_ERROR",
            request_id=request_id,
        ),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Setup all exception handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(VidShieldException, vidshield_exception_handler)
    app.add_exception_handler(DomainException, domain_exception_handler)

    # Standard HTTP exception handlers
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.add_exception_handler(Exception, generic_exception_handler)
