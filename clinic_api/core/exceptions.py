"""
Application error types and the exception handlers that render them.

Every error raised by the services carries an ``ErrorKind``; the handlers
registered here are the only place where a kind becomes an HTTP status.
"""
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class TokenRejection(str, Enum):
    """Why a bearer token was refused."""
    MISSING = "token_missing"
    MALFORMED = "token_malformed"
    EXPIRED = "token_expired"


class ClinicError(Exception):
    """Base class for errors the API reports to its callers."""

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.default_message
        self.errors = errors
        self.headers = headers
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ValidationError(ClinicError):
    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"


class ConflictError(ClinicError):
    """A unique field already belongs to another user."""
    kind = ErrorKind.CONFLICT

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"{field} already exists", errors=[{"field": field}])


class AuthenticationError(ClinicError):
    kind = ErrorKind.AUTHENTICATION
    default_message = "Could not validate credentials"

    def __init__(self, message: Optional[str] = None, reason: Optional[TokenRejection] = None):
        self.reason = reason
        super().__init__(
            message,
            errors=[reason.value] if reason else None,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ClinicError):
    kind = ErrorKind.AUTHORIZATION
    default_message = "Not enough permissions"

    def __init__(self, message: Optional[str] = None, required_roles: Optional[List[str]] = None):
        self.required_roles = required_roles
        super().__init__(message, errors=required_roles)


class NotFoundError(ClinicError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class InternalError(ClinicError):
    kind = ErrorKind.INTERNAL


def error_body(message: str, errors: Optional[List[Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


async def clinic_error_handler(request: Request, exc: ClinicError):
    if exc.kind is ErrorKind.INTERNAL:
        logger.error(f"Internal error on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.kind.value} error on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.errors),
        headers=exc.headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    messages = [
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    ]
    logger.info(f"Validation error on {request.url.path}: {messages}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", messages),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = "Route not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(InternalError.default_message),
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(ClinicError, clinic_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
