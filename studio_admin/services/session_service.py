"""Server-side session store for signed-in users."""
import logging
import secrets
from datetime import timedelta
from typing import Optional
from sqlalchemy import delete, select
from ..models import db, unit_of_work, AuthSession, User, now

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


class SessionStore:
    """Create, resolve and invalidate AuthSession rows.

    Sessions slide: when less than half of the lifetime remains at lookup
    time, the expiry is pushed out to a full lifetime again.
    """

    def __init__(self, lifetime_hours=24 * 7):
        self.lifetime = timedelta(hours=lifetime_hours)
        self.refresh_threshold = self.lifetime / 2

    def create(self, user: User, ip_address: Optional[str] = None, user_agent: Optional[str] = None) -> AuthSession:
        with unit_of_work() as session:
            auth_session = AuthSession(
                token=secrets.token_urlsafe(TOKEN_BYTES),
                user_id=user.id,
                expires_at=now() + self.lifetime,
                ip_address=(ip_address or '')[:64] or None,
                user_agent=(user_agent or '')[:500] or None,
            )
            session.add(auth_session)
        logger.info(f"Session created for user {user.id}")
        return auth_session

    def resolve(self, token: str, on_refresh=None) -> Optional[AuthSession]:
        """Return the live session for ``token``, or None.

        Expired sessions are deleted as a side effect. ``on_refresh`` is
        called with the session when its expiry slides forward.
        """
        if not token:
            return None
        auth_session = db.session.execute(
            select(AuthSession).where(AuthSession.token == token)
        ).scalar_one_or_none()
        if auth_session is None:
            return None

        current = now()
        if auth_session.expires_at <= current:
            logger.info(f"Session {auth_session.id} expired, removing")
            with unit_of_work() as session:
                session.delete(auth_session)
            return None

        if auth_session.expires_at - current < self.refresh_threshold:
            with unit_of_work():
                auth_session.expires_at = current + self.lifetime
            logger.debug(f"Session {auth_session.id} refreshed until {auth_session.expires_at}")
            if on_refresh is not None:
                on_refresh(auth_session)
        return auth_session

    def invalidate(self, token: str) -> bool:
        with unit_of_work() as session:
            result = session.execute(delete(AuthSession).where(AuthSession.token == token))
        return result.rowcount > 0

    def purge_expired(self) -> int:
        with unit_of_work() as session:
            result = session.execute(delete(AuthSession).where(AuthSession.expires_at <= now()))
        if result.rowcount:
            logger.info(f"Purged {result.rowcount} expired sessions")
        return result.rowcount
