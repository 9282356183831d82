"""Error taxonomy for the admin API.

Every failure that reaches a client is an ApiError with one ErrorKind, and
every kind maps to exactly one HTTP status.
"""
import enum
import logging
from typing import Optional
import requests
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from studio_core.validation import ValidationError as InputValidationError

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    AUTHENTICATION = "AUTHENTICATION"
    AUTHORIZATION = "AUTHORIZATION"
    DATABASE = "DATABASE"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    INTERNAL = "INTERNAL"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    VALIDATION = "VALIDATION"


STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.METHOD_NOT_ALLOWED: 405,
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.DATABASE: 500,
    ErrorKind.EXTERNAL_SERVICE: 502,
    ErrorKind.INTERNAL: 500,
}

GENERIC_DATABASE_MESSAGE = "A database error occurred"
GENERIC_INTERNAL_MESSAGE = "Internal server error"


def status_for(kind: ErrorKind) -> int:
    return STATUS_BY_KIND[kind]


class ApiError(Exception):
    """Base class for errors that are reported to the client.

    Args:
        message: Client-safe message placed in the envelope's ``error`` field
        details: Extra context for the logs; never sent to the client
    """
    kind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def status_code(self) -> int:
        return status_for(self.kind)


class ValidationError(ApiError):
    kind = ErrorKind.VALIDATION


class AuthenticationError(ApiError):
    kind = ErrorKind.AUTHENTICATION


class AuthorizationError(ApiError):
    kind = ErrorKind.AUTHORIZATION


class NotFoundError(ApiError):
    kind = ErrorKind.NOT_FOUND


class MethodNotAllowedError(ApiError):
    kind = ErrorKind.METHOD_NOT_ALLOWED


class RateLimitError(ApiError):
    kind = ErrorKind.RATE_LIMIT

    def __init__(self, message: str = "Too many requests", retry_after: int = 60, details: Optional[dict] = None):
        super().__init__(message, details)
        self.retry_after = retry_after


class DatabaseError(ApiError):
    kind = ErrorKind.DATABASE


class ExternalServiceError(ApiError):
    kind = ErrorKind.EXTERNAL_SERVICE


class InternalError(ApiError):
    kind = ErrorKind.INTERNAL


def format_pydantic_error(exc: PydanticValidationError) -> str:
    """Render the first error of a pydantic ValidationError as ``field: message``."""
    error = exc.errors()[0]
    field = '.'.join(str(x) for x in error['loc'])
    msg = error['msg']
    if field:
        return f"{field}: {msg}"
    return msg


def validation_error_from(exc: PydanticValidationError, prefix: str = "Validation error") -> ValidationError:
    return ValidationError(f"{prefix}: {format_pydantic_error(exc)}", details={'errors': exc.error_count()})


def from_http_exception(exc: HTTPException) -> ApiError:
    """Translate a werkzeug HTTP error (404, 405, 413 ...) into the taxonomy."""
    code = exc.code or 500
    if code == 404:
        return NotFoundError("Not found")
    if code == 405:
        return MethodNotAllowedError("Method not allowed")
    if code == 413:
        return ValidationError("Request body too large")
    if code == 401:
        return AuthenticationError("Authentication required")
    if code == 403:
        return AuthorizationError("Access denied")
    if code == 429:
        return RateLimitError()
    if 400 <= code < 500:
        return ValidationError(exc.description or "Bad request")
    return InternalError(GENERIC_INTERNAL_MESSAGE, details={'error': str(exc)})


def classify_exception(exc: Exception) -> ApiError:
    """Map any exception onto the error taxonomy.

    Unknown failures become INTERNAL with a generic message; database
    failures never leak driver messages to the client.
    """
    if isinstance(exc, ApiError):
        return exc
    if isinstance(exc, HTTPException):
        return from_http_exception(exc)
    if isinstance(exc, PydanticValidationError):
        return validation_error_from(exc)
    if isinstance(exc, InputValidationError):
        return ValidationError(f"Validation error: {exc}")
    if isinstance(exc, SQLAlchemyError):
        return DatabaseError(GENERIC_DATABASE_MESSAGE, details={'error': str(exc)})
    if isinstance(exc, requests.Timeout):
        return ExternalServiceError("External service timed out", details={'error': str(exc)})
    if isinstance(exc, requests.RequestException):
        return ExternalServiceError("External service request failed", details={'error': str(exc)})
    return InternalError(GENERIC_INTERNAL_MESSAGE, details={'error': str(exc), 'type': type(exc).__name__})
