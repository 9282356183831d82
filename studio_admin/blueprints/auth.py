"""Authentication blueprint: sign-in, sign-out and session introspection."""
import logging
from flask import Blueprint, g, request
from sqlalchemy import select
from werkzeug.security import check_password_hash, generate_password_hash
from studio_core.schemas import LoginRequest, UserResponse, dump
from ..base.validation import RateLimit, ValidationConfig, with_validation
from ..base.session_gate import clear_session_cookies, end_session, resolve_session, set_session_cookies
from ..envelope import success_response
from ..errors import AuthenticationError
from ..extensions import get_services
from ..models import db, User

logger = logging.getLogger(__name__)

bp = Blueprint('auth', __name__, url_prefix='/api/auth')

LOGIN_CONFIG = ValidationConfig(allowed_methods=('POST',), body_schema=LoginRequest, require_admin=False,
                                rate_limit=RateLimit(10), csrf=False)
LOGOUT_CONFIG = ValidationConfig(allowed_methods=('POST',), require_admin=False, rate_limit=RateLimit(30))
SESSION_CONFIG = ValidationConfig(allowed_methods=('GET',), require_admin=False, rate_limit=RateLimit(120))

# Computed once so unknown emails cost the same as wrong passwords
_DUMMY_HASH = None


def _dummy_hash():
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = generate_password_hash('not-a-real-password')
    return _DUMMY_HASH



@bp.route('/login', methods=['POST'])
@with_validation(LOGIN_CONFIG)
def login():
    """Check credentials and start a session."""
    body = g.validated_body
    user = db.session.execute(select(User).where(User.email == body.email)).scalar_one_or_none()
    password_hash = user.password_hash if user else _dummy_hash()
    if not check_password_hash(password_hash, body.password) or user is None:
        logger.warning(f"Failed login for {body.email} from {request.remote_addr}", extra={
            'extra_fields': {'security_event': 'login_failed'}
        })
        raise AuthenticationError("Invalid email or password")

    services = get_services()
    auth_session = services.sessions.create(user, request.remote_addr, request.headers.get('User-Agent'))
    csrf_token = services.csrf.issue(auth_session.token)
    end_session()
    logger.info(f"User {user.id} signed in")

    response = success_response({
        'user': dump(UserResponse, user),
        'token': auth_session.token,
        'csrfToken': csrf_token,
        'expiresAt': auth_session.expires_at.isoformat() + 'Z',
    }, message="Signed in")
    set_session_cookies(response, auth_session.token, csrf_token, auth_session.expires_at)
    return response


@bp.route('/logout', methods=['POST'])
@with_validation(LOGOUT_CONFIG)
def logout():
    """End the current session, if any, and clear cookies."""
    resolved = resolve_session()
    if resolved.token:
        get_services().sessions.invalidate(resolved.token)
        logger.info(f"User {resolved.user_id} signed out")
    end_session()
    response = success_response(None, message="Signed out")
    clear_session_cookies(response)
    return response


@bp.route('/session', methods=['GET'])
@with_validation(SESSION_CONFIG)
def current_session():
    """Describe the caller's session; anonymous callers get 401."""
    resolved = resolve_session()
    if not resolved.is_authenticated:
        raise AuthenticationError("Authentication required")
    user = db.session.get(User, resolved.user_id)
    return {
        'authenticated': True,
        'isAdmin': resolved.is_admin,
        'user': dump(UserResponse, user),
        'expiresAt': resolved.expires_at.isoformat() + 'Z',
    }
