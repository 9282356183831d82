"""Double-submit CSRF tokens bound to a session."""
import hashlib
import hmac
import logging
from itsdangerous import BadSignature, URLSafeTimedSerializer

logger = logging.getLogger(__name__)


class CsrfProtector:
    """Issue and verify signed CSRF tokens.

    A token embeds a digest of the session token it was issued for, so a
    token lifted from one session is useless in another.
    """

    def __init__(self, secret_key, max_age_seconds):
        self.serializer = URLSafeTimedSerializer(secret_key, salt='studio-admin-csrf')
        self.max_age = max_age_seconds

    @staticmethod
    def _binding(session_token):
        return hashlib.sha256(session_token.encode('utf-8')).hexdigest()[:32]

    def issue(self, session_token):
        return self.serializer.dumps({'s': self._binding(session_token)})

    def verify(self, header_token, cookie_token, session_token):
        """Return True when header and cookie agree and are signed for this session."""
        if not header_token or not cookie_token or not session_token:
            return False
        if not hmac.compare_digest(header_token, cookie_token):
            return False
        try:
            payload = self.serializer.loads(header_token, max_age=self.max_age)
        except BadSignature as e:
            logger.warning(f"Rejected CSRF token: {e}")
            return False
        return hmac.compare_digest(str(payload.get('s', '')), self._binding(session_token))
