"""Admin API utility functions."""
import logging
from flask import current_app, request
from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)
from .envelope import api_error_response, get_request_id
from .errors import ApiError, classify_exception
from .models import db

logger = logging.getLogger(__name__)


def api_error(exc: ApiError, log_level='warning'):
    """
    Standardized API error response with consistent logging.

    Args:
        exc (ApiError): The classified error
        log_level (str): Logging level ('debug', 'info', 'warning', 'error', 'critical')

    Returns:
        Flask response: envelope with the status of the error's kind
    """
    if exc.details:
        log_func = getattr(logger, log_level, logger.warning)
        log_func(f"API Error ({exc.status_code}) details: {exc.details}")
    return api_error_response(exc)


def handle_api_exception(e, operation="operation"):
    """
    Handle exceptions in API endpoints with consistent logging and responses.

    Client errors are logged as warnings. Server-side failures are logged
    with their traceback, roll back the current database session and are
    reported to the monitoring webhook when one is configured.

    Args:
        e (Exception): The exception that occurred
        operation (str): Description of the operation being performed

    Returns:
        Flask response: JSON error envelope
    """
    error = classify_exception(e)
    if error.status_code < 500:
        return api_error(error, 'warning')

    logger.error(f"Exception during {operation}: {str(e)}", exc_info=True, extra={
        'extra_fields': {'error_kind': error.kind.value, 'path': request.path, 'method': request.method}
    })
    db.session.rollback()

    services = current_app.extensions.get('studio')
    if services is not None:
        services.monitoring.report_error(
            error.message,
            kind=error.kind.value,
            path=request.path,
            method=request.method,
            request_id=get_request_id(),
            exception=e,
        )
    return api_error_response(error)


def with_retry(func, *args, attempts=3, retry_on=(Exception,), wait_min=0.5, wait_max=8, **kwargs):
    """
    Call ``func`` with exponential backoff between attempts.

    Args:
        func: Callable to invoke
        attempts (int): Total number of attempts, 1 means no retry
        retry_on (tuple): Exception types that trigger another attempt
        wait_min (float): Lower bound for the backoff delay in seconds
        wait_max (float): Upper bound for the backoff delay in seconds

    Returns:
        Whatever ``func`` returns

    Raises:
        The last exception raised by ``func`` once attempts are exhausted
    """
    retryer = Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=wait_min, min=wait_min, max=wait_max),
        retry=retry_if_exception_type(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retryer(func, *args, **kwargs)
