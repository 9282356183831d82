"""Request validation pipeline for admin API views.

``with_validation`` wraps a view so that, in order, the method, headers,
body size, rate limit, admin gate, CSRF token, required headers, body schema
and query schema are checked before the view runs. The first failing check
produces an error envelope and the view is never called.
"""
import dataclasses
import logging
from dataclasses import dataclass
from functools import wraps
from typing import Optional, Tuple, Type
from flask import current_app, g, request
from pydantic import BaseModel, ValidationError as PydanticValidationError
from werkzeug.wrappers import Response
from studio_core.validation import contains_suspicious_patterns
from ..envelope import api_error_response, success_response
from ..errors import (
    ApiError, AuthorizationError, MethodNotAllowedError, RateLimitError, ValidationError, validation_error_from
)
from ..extensions import get_services
from ..utils import handle_api_exception
from .session_gate import require_admin, resolve_session

logger = logging.getLogger(__name__)

DEFAULT_MAX_BODY_SIZE = 1024 * 1024
WRITE_METHODS = frozenset({'POST', 'PUT', 'PATCH', 'DELETE'})
BODY_METHODS = frozenset({'POST', 'PUT', 'PATCH'})
ACCEPTED_CONTENT_TYPES = ('application/json', 'multipart/form-data', 'application/x-www-form-urlencoded')
SCREENED_HEADERS = ('User-Agent', 'Referer', 'X-Forwarded-For', 'X-Request-ID')


@dataclass(frozen=True)
class RateLimit:
    max_requests: int
    window_seconds: int = 60


@dataclass(frozen=True)
class ValidationConfig:
    """Per-route validation settings.

    Attributes:
        body_schema: pydantic model the JSON body must satisfy
        query_schema: pydantic model the query string must satisfy
        allowed_methods: methods the route accepts; None accepts any
        max_body_size: largest accepted Content-Length in bytes
        require_admin: whether the admin gate applies
        rate_limit: per-client request budget, or None
        required_headers: headers that must be present
        csrf: whether cookie-authenticated writes need a CSRF token
    """
    body_schema: Optional[Type[BaseModel]] = None
    query_schema: Optional[Type[BaseModel]] = None
    allowed_methods: Optional[Tuple[str, ...]] = None
    max_body_size: int = DEFAULT_MAX_BODY_SIZE
    require_admin: bool = True
    rate_limit: Optional[RateLimit] = None
    required_headers: Tuple[str, ...] = ()
    csrf: bool = True

    def replace(self, **changes):
        return dataclasses.replace(self, **changes)


class Presets:
    """Standard configurations shared by the admin routes."""
    DASHBOARD_READ = ValidationConfig(allowed_methods=('GET',), rate_limit=RateLimit(200))
    RESOURCE_READ = ValidationConfig(allowed_methods=('GET',), rate_limit=RateLimit(100))
    RESOURCE_WRITE = ValidationConfig(allowed_methods=('POST', 'PUT', 'PATCH'), rate_limit=RateLimit(30))
    RESOURCE_DELETE = ValidationConfig(allowed_methods=('DELETE',), rate_limit=RateLimit(10))
    MEDIA_UPLOAD = ValidationConfig(allowed_methods=('POST',), max_body_size=101 * 1024 * 1024,
                                    rate_limit=RateLimit(10))
    SETTINGS_WRITE = ValidationConfig(allowed_methods=('PUT', 'PATCH'), rate_limit=RateLimit(10))
    SYSTEM_ADMIN = ValidationConfig(allowed_methods=('POST',), rate_limit=RateLimit(5))


def _check_method(config):
    if config.allowed_methods and request.method not in config.allowed_methods:
        raise MethodNotAllowedError(f"Method {request.method} not allowed")


def _check_content_type(config):
    if request.method not in BODY_METHODS or not request.content_length:
        return
    mimetype = request.mimetype
    if mimetype not in ACCEPTED_CONTENT_TYPES:
        raise ValidationError(f"Unsupported content type: {mimetype or 'none'}")
    if config.body_schema is not None and mimetype != 'application/json':
        raise ValidationError("Request body must be JSON")


def _check_headers():
    for name in SCREENED_HEADERS:
        value = request.headers.get(name)
        if value and contains_suspicious_patterns(value):
            logger.warning(f"Suspicious content in {name} header from {request.remote_addr}", extra={
                'extra_fields': {'security_event': 'suspicious_header', 'header': name}
            })
            raise ValidationError("Invalid request headers")


def _check_body_size(config):
    length = request.content_length
    if length is not None and length > config.max_body_size:
        raise ValidationError(f"Request body too large (limit {config.max_body_size} bytes)")


def _check_rate_limit(config):
    if config.rate_limit is None:
        return
    key = f"{request.remote_addr or 'unknown'}:{request.endpoint}"
    decision = get_services().rate_limiter.hit(key, config.rate_limit.max_requests, config.rate_limit.window_seconds)
    if not decision.allowed:
        raise RateLimitError("Too many requests", retry_after=decision.retry_after)


def _check_csrf(config, resolved):
    if not config.csrf or request.method not in WRITE_METHODS or not resolved.via_cookie:
        return
    header_token = request.headers.get(current_app.config['CSRF_HEADER_NAME'])
    cookie_token = request.cookies.get(current_app.config['CSRF_COOKIE_NAME'])
    if not get_services().csrf.verify(header_token, cookie_token, resolved.token):
        logger.warning(f"CSRF check failed for {request.method} {request.path}", extra={
            'extra_fields': {'security_event': 'csrf_failed', 'user_id': resolved.user_id}
        })
        raise AuthorizationError("Invalid or missing CSRF token")


def _check_required_headers(config):
    missing = [name for name in config.required_headers if not request.headers.get(name)]
    if missing:
        raise ValidationError(f"Missing required headers: {', '.join(missing)}")


def _validate_body(config):
    if config.body_schema is None or request.method not in BODY_METHODS:
        return None
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body format")
    if contains_suspicious_patterns(data):
        logger.warning(f"Suspicious content in request body for {request.path}", extra={
            'extra_fields': {'security_event': 'suspicious_body'}
        })
        raise ValidationError("Request contains disallowed content")
    try:
        return config.body_schema.model_validate(data)
    except PydanticValidationError as e:
        raise validation_error_from(e, "Validation error") from e


def _validate_query(config):
    if config.query_schema is None:
        return None
    params = request.args.to_dict()
    if contains_suspicious_patterns(params):
        raise ValidationError("Query contains disallowed content")
    try:
        return config.query_schema.model_validate(params)
    except PydanticValidationError as e:
        raise validation_error_from(e, "Query validation error") from e


def to_response(result):
    """Wrap plain handler results in a success envelope."""
    if isinstance(result, Response):
        return result
    if isinstance(result, tuple):
        data, status = result
        return success_response(data, status=status)
    return success_response(result)


def with_validation(config: ValidationConfig = ValidationConfig()):
    """Decorate a view with the validation pipeline described by ``config``.

    The validated body and query models are exposed as ``g.validated_body``
    and ``g.validated_query``; the caller's session as ``g.studio_session``.
    """
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                _check_method(config)
                _check_content_type(config)
                _check_headers()
                _check_body_size(config)
                _check_rate_limit(config)
                resolved = require_admin() if config.require_admin else resolve_session()
                _check_csrf(config, resolved)
                _check_required_headers(config)
                g.validated_body = _validate_body(config)
                g.validated_query = _validate_query(config)
            except ApiError as e:
                return api_error_response(e)
            except Exception as e:
                return handle_api_exception(e, f"validating {request.method} {request.path}")

            try:
                return to_response(view(*args, **kwargs))
            except Exception as e:
                return handle_api_exception(e, f"{request.method} {request.path}")

        wrapper.validation_config = config
        return wrapper
    return decorator
