"""Error reporting and health checks."""
import logging
import time
from threading import Lock
from typing import Optional
import requests
from sqlalchemy import func, select
from ..envelope import utc_timestamp
from ..models import db, check_database, Customer, TattooDesign, User

logger = logging.getLogger(__name__)


class MonitoringService:
    """Forward server-side failures to an external webhook.

    Reporting is best effort: a missing URL disables it and delivery
    failures are only logged.
    """

    def __init__(self, webhook_url: Optional[str] = None, environment: str = 'development',
                 timeout: float = 3.0, http: Optional[requests.Session] = None):
        self.webhook_url = webhook_url
        self.environment = environment
        self.timeout = timeout
        self.http = http or requests.Session()

    @property
    def enabled(self):
        return bool(self.webhook_url)

    def report_error(self, message, kind='INTERNAL', path=None, method=None, request_id=None, exception=None):
        if not self.enabled:
            return False
        payload = {
            'message': message,
            'kind': kind,
            'path': path,
            'method': method,
            'requestId': request_id,
            'environment': self.environment,
            'exception': type(exception).__name__ if exception else None,
            'detail': str(exception)[:1000] if exception else None,
            'timestamp': utc_timestamp(),
        }
        try:
            response = self.http.post(self.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return True
        except requests.RequestException as e:
            logger.warning(f"Failed to deliver error report to monitoring webhook: {e}")
            return False


class HealthChecker:
    """Build the health report, caching it for ``cache_seconds``."""

    def __init__(self, cache_seconds=30, clock=time.monotonic):
        self.cache_seconds = cache_seconds
        self._clock = clock
        self._cached = None
        self._cached_at = 0.0
        self._lock = Lock()

    def report(self, config, force=False):
        with self._lock:
            if not force and self._cached is not None and self._clock() - self._cached_at < self.cache_seconds:
                return self._cached

        started = time.perf_counter()
        database_ok = check_database()
        latency_ms = round((time.perf_counter() - started) * 1000, 1)
        checks = {
            'database': {'status': 'ok' if database_ok else 'error', 'latencyMs': latency_ms},
            'auth': {'status': 'ok' if config.get('SECRET_KEY') else 'error'},
            'websiteSync': {'status': 'ok' if config.get('WEBSITE_API_URL') and config.get('WEBSITE_API_KEY') else 'disabled'},
            'monitoring': {'status': 'ok' if config.get('MONITORING_WEBHOOK_URL') else 'disabled'},
        }
        if database_ok:
            checks['database']['counts'] = {
                'users': db.session.execute(select(func.count()).select_from(User)).scalar(),
                'customers': db.session.execute(select(func.count()).select_from(Customer)).scalar(),
                'media': db.session.execute(select(func.count()).select_from(TattooDesign)).scalar(),
            }

        healthy = database_ok and checks['auth']['status'] == 'ok'
        report = {
            'status': 'healthy' if healthy else 'unhealthy',
            'environment': config.get('ENVIRONMENT'),
            'checks': checks,
            'checkedAt': utc_timestamp(),
        }
        with self._lock:
            self._cached = report
            self._cached_at = self._clock()
        return report
