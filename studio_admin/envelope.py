"""Response envelope helpers.

Every API response body is ``{success, data?, error?, message?, status,
timestamp, requestId?}``; the HTTP status line always equals ``status`` and
the response carries the ``X-Request-ID`` and ``X-Timestamp`` headers.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Union
from flask import g, has_request_context, jsonify, request
from studio_core.schemas import ApiResponse
from .errors import ApiError, RateLimitError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = 'X-Request-ID'
TIMESTAMP_HEADER = 'X-Timestamp'


def generate_request_id() -> str:
    return f"req_{uuid.uuid4()}"


def get_request_id() -> Optional[str]:
    """Return the id of the current request, creating one on first use."""
    if not has_request_context():
        return None
    if 'request_id' not in g:
        incoming = request.headers.get(REQUEST_ID_HEADER, '')
        g.request_id = incoming if incoming and len(incoming) <= 100 else generate_request_id()
    return g.request_id


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def create_success_response(data: Any, message: Optional[str] = None, request_id: Optional[str] = None,
                            status: int = 200) -> dict:
    return ApiResponse(
        success=True,
        data=data,
        message=message,
        status=status,
        timestamp=utc_timestamp(),
        request_id=request_id,
    ).to_dict()


def create_error_response(error: Union[str, Exception], status_code: int = 500,
                          request_id: Optional[str] = None) -> dict:
    """Build a failure envelope from a message or an exception."""
    if isinstance(error, ApiError):
        error = error.message
    elif isinstance(error, Exception):
        error = str(error)
    return ApiResponse(
        success=False,
        error=error or "Unknown error",
        status=status_code,
        timestamp=utc_timestamp(),
        request_id=request_id,
    ).to_dict()


def _respond(body: dict, headers: Optional[dict] = None):
    response = jsonify(body)
    response.status_code = body['status']
    response.headers[TIMESTAMP_HEADER] = body['timestamp']
    if body.get('requestId'):
        response.headers[REQUEST_ID_HEADER] = body['requestId']
    for key, value in (headers or {}).items():
        response.headers[key] = value
    return response


def success_response(data: Any = None, message: Optional[str] = None, status: int = 200, headers: Optional[dict] = None):
    body = create_success_response(data, message=message, request_id=get_request_id(), status=status)
    return _respond(body, headers)


def error_response(error: Union[str, Exception], status: int = 500, headers: Optional[dict] = None):
    body = create_error_response(error, status_code=status, request_id=get_request_id())
    log = logger.error if status >= 500 else logger.warning
    log(f"Responding {status}: {body['error']}")
    return _respond(body, headers)


def unauthorized_response(error: str = "Authentication required"):
    return error_response(error, 401)


def forbidden_response(error: str = "Admin access required"):
    return error_response(error, 403)


def not_found_response(resource: str = "Resource"):
    return error_response(f"{resource} not found", 404)


def rate_limit_response(retry_after: int = 60):
    return error_response("Too many requests", 429, headers={'Retry-After': str(retry_after)})


def internal_error_response(error: str = "Internal server error"):
    return error_response(error, 500)


def api_error_response(exc: ApiError):
    """Render an ApiError as an envelope with the status of its kind."""
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {'Retry-After': str(exc.retry_after)}
    return error_response(exc.message, exc.status_code, headers)
