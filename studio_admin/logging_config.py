"""Logging configuration for the admin API."""
import logging
import os
import json
from logging.handlers import RotatingFileHandler
from flask import g, has_request_context
from studio_core.models import now


class StructuredFormatter(logging.Formatter):
    """Structured JSON formatter for better log analysis."""

    def format(self, record):
        log_entry = {
            'timestamp': now().isoformat() + 'Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        request_id = getattr(record, 'request_id', None)
        if request_id:
            log_entry['request_id'] = request_id

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Add extra fields from record
        if hasattr(record, 'extra_fields'):
            log_entry.update(record.extra_fields)

        return json.dumps(log_entry, default=str)


class RequestIdFilter(logging.Filter):
    """Attach the current request id (if any) to every record."""

    def filter(self, record):
        if not hasattr(record, 'request_id'):
            record.request_id = g.get('request_id') if has_request_context() else None
        return True


def setup_logging(log_dir=None, log_level_str=None):
    """Setup logging configuration for the admin API.

    Handlers installed by a previous call are replaced, so calling this once
    per app factory invocation does not duplicate output.

    Args:
        log_dir: Directory for the rotating JSON log (defaults to LOG_DIR or ./logs)
        log_level_str: Level name (defaults to LOG_LEVEL or INFO)
    """
    log_level_str = (log_level_str or os.getenv('LOG_LEVEL', 'INFO')).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    logs_dir = log_dir or os.getenv('LOG_DIR') or os.path.join(os.path.dirname(__file__), '..', 'logs')
    os.makedirs(logs_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    structured_formatter = StructuredFormatter()
    simple_formatter = logging.Formatter(
        '%(asctime)s %(levelname)-8s %(name)-20s [%(request_id)s] %(message)s'
    )
    request_filter = RequestIdFilter()

    # File handler with rotation (structured JSON)
    log_file = os.path.join(logs_dir, 'studio_admin.log')
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(structured_formatter)
    file_handler.addFilter(request_filter)

    # Console handler (human-readable)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(simple_formatter)
    console_handler.addFilter(request_filter)

    for handler in list(logger.handlers):
        if getattr(handler, '_studio_handler', False):
            logger.removeHandler(handler)
            handler.close()

    for handler in (file_handler, console_handler):
        handler._studio_handler = True
        logger.addHandler(handler)

    logging.getLogger('werkzeug').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('libcloud').setLevel(logging.WARNING)

    logger.info("Logging initialized", extra={
        'extra_fields': {
            'log_level': log_level_str,
            'log_file': log_file,
            'structured_logging': True
        }
    })

    return logger
