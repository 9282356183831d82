"""Health endpoints used by load balancers and uptime checks."""
import logging
from flask import Blueprint, current_app, request
from ..base.validation import RateLimit, ValidationConfig, with_validation
from ..envelope import error_response, success_response, utc_timestamp
from ..errors import ErrorKind
from ..extensions import get_services
from ..models import check_database

logger = logging.getLogger(__name__)

bp = Blueprint('health', __name__, url_prefix='/api/health')

HEALTH_CONFIG = ValidationConfig(allowed_methods=('GET',), require_admin=False, rate_limit=RateLimit(60))
STATUS_CONFIG = ValidationConfig(allowed_methods=('GET',), require_admin=False)


@bp.route('', methods=['GET'])
@with_validation(HEALTH_CONFIG)
def health():
    """Full health report, cached briefly. ``?force=true`` skips the cache.

    An unhealthy service answers 503 with an error naming the failing
    checks; the full report goes to the log.
    """
    force = request.args.get('force', '').lower() in ('1', 'true', 'yes')
    report = get_services().health.report(current_app.config, force=force)
    if report['status'] == 'healthy':
        return success_response(report)
    failing = sorted(name for name, check in report['checks'].items() if check['status'] == 'error')
    logger.warning(f"Health check failed: {report['checks']}")
    return error_response(f"Service unhealthy: {', '.join(failing)}", 503)


@bp.route('/live', methods=['GET'])
@with_validation(STATUS_CONFIG)
def live():
    return {'status': 'alive', 'timestamp': utc_timestamp()}


@bp.route('/ready', methods=['GET'])
@with_validation(STATUS_CONFIG)
def ready():
    if not check_database():
        return error_response(f"Service not ready: {ErrorKind.DATABASE.value}", 503)
    return {'status': 'ready'}
