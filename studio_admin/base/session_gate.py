"""Admin session gate.

Resolves the caller's session once per request and decides access:
anonymous API callers get 401, signed-in non-admins get 403, and page
requests are redirected to the login or access-denied page instead.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote
from flask import current_app, g, redirect, request
from sqlalchemy.exc import SQLAlchemyError
from studio_core.enums import UserRole
from ..errors import AuthenticationError, AuthorizationError
from ..extensions import get_services
from ..models import db, User

logger = logging.getLogger(__name__)

PROTECTED_PAGE_PREFIXES = ('/dashboard',)
LOGIN_PAGE = '/login'
ACCESS_DENIED_PAGE = '/access-denied'


class AccessState(str, enum.Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class ResolvedSession:
    state: AccessState
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None
    token: Optional[str] = None
    expires_at: Optional[datetime] = None
    via_cookie: bool = False
    refreshed: bool = False

    @property
    def is_authenticated(self):
        return self.state == AccessState.AUTHENTICATED

    @property
    def is_admin(self):
        return self.is_authenticated and self.role == UserRole.ADMIN


ANONYMOUS = ResolvedSession(AccessState.ANONYMOUS)


def extract_token():
    """Return ``(token, via_cookie)`` from the session cookie or a Bearer header."""
    cookie_token = request.cookies.get(current_app.config['STUDIO_SESSION_COOKIE'])
    if cookie_token:
        return cookie_token, True
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        token = auth_header[len('Bearer '):].strip()
        if token:
            return token, False
    return None, False


def resolve_session() -> ResolvedSession:
    """Resolve and cache the current request's session.

    Lookup failures are logged and treated as anonymous rather than
    surfacing as server errors.
    """
    if 'studio_session' in g:
        return g.studio_session

    resolved = ANONYMOUS
    token, via_cookie = extract_token()
    if token:
        try:
            refreshed = []
            auth_session = get_services().sessions.resolve(token, on_refresh=refreshed.append)
            user = db.session.get(User, auth_session.user_id) if auth_session else None
            if user is not None:
                resolved = ResolvedSession(
                    state=AccessState.AUTHENTICATED,
                    user_id=user.id,
                    email=user.email,
                    role=UserRole(user.role),
                    token=token,
                    expires_at=auth_session.expires_at,
                    via_cookie=via_cookie,
                    refreshed=bool(refreshed),
                )
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Session lookup failed, treating request as anonymous: {e}")

    g.studio_session = resolved
    return resolved


def require_admin() -> ResolvedSession:
    """Return the admin session or raise the matching gate error."""
    resolved = resolve_session()
    if not resolved.is_authenticated:
        logger.warning(f"Unauthenticated request to {request.method} {request.path}", extra={
            'extra_fields': {'security_event': 'unauthenticated', 'ip': request.remote_addr}
        })
        raise AuthenticationError("Authentication required")
    if not resolved.is_admin:
        logger.warning(f"Non-admin user {resolved.user_id} refused at {request.method} {request.path}", extra={
            'extra_fields': {'security_event': 'forbidden', 'role': resolved.role.value if resolved.role else None}
        })
        raise AuthorizationError("Admin access required")
    return resolved


def is_protected_page(path):
    return any(path == prefix or path.startswith(prefix + '/') for prefix in PROTECTED_PAGE_PREFIXES)


def init_session_gate(app):
    """Redirect page requests that fail the gate and carry sliding expiry to cookies."""
    @app.before_request
    def gate_pages():
        if not is_protected_page(request.path):
            return None
        resolved = resolve_session()
        if not resolved.is_authenticated:
            return redirect(f"{LOGIN_PAGE}?from={quote(request.path)}")
        if not resolved.is_admin:
            return redirect(ACCESS_DENIED_PAGE)
        return None

    @app.after_request
    def refresh_session_cookies(response):
        resolved = g.get('studio_session')
        if resolved is None or not (resolved.refreshed and resolved.via_cookie):
            return response
        csrf_token = get_services().csrf.issue(resolved.token)
        set_session_cookies(response, resolved.token, csrf_token, resolved.expires_at)
        logger.debug(f"Reissued session cookies for user {resolved.user_id} until {resolved.expires_at}")
        return response


def set_session_cookies(response, token, csrf_token, expires_at):
    """Attach the HTTP-only session cookie and the readable CSRF cookie."""
    config = current_app.config
    common = {
        'expires': expires_at.replace(tzinfo=timezone.utc),
        'secure': config.get('SESSION_COOKIE_SECURE', False),
        'samesite': 'Lax',
        'domain': config.get('SESSION_COOKIE_DOMAIN'),
        'path': '/',
    }
    response.set_cookie(config['STUDIO_SESSION_COOKIE'], token, httponly=True, **common)
    response.set_cookie(config['CSRF_COOKIE_NAME'], csrf_token, httponly=False, **common)


def clear_session_cookies(response):
    config = current_app.config
    for name in (config['STUDIO_SESSION_COOKIE'], config['CSRF_COOKIE_NAME']):
        response.delete_cookie(name, domain=config.get('SESSION_COOKIE_DOMAIN'), path='/')


def end_session():
    """Forget the resolved session so no cookie refresh follows this request."""
    g.studio_session = ANONYMOUS
