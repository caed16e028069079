"""Session token lifecycle management.

Sessions are stored in Valkey with a TTL matching the session lifetime,
so stale entries are evicted by the store itself. Lookups additionally
compare against the recorded expiry. Lifetimes are fixed from creation;
activity does not extend them.
"""

import logging
import secrets
from datetime import timedelta

from clients.valkey_client import ValkeyClient
from auth.config import AuthConfig
from auth.types import Session
from auth.exceptions import SessionExpiredError
from utils.timezone import now_utc, parse_iso

logger = logging.getLogger(__name__)


class SessionManager:
    """Mint, look up and destroy opaque session tokens."""

    KEY_PREFIX = "session:"

    def __init__(self, valkey: ValkeyClient, config: AuthConfig):
        self._valkey = valkey
        self._config = config

    def _key(self, token: str) -> str:
        return f"{self.KEY_PREFIX}{token}"

    @property
    def lifetime_seconds(self) -> int:
        return self._config.session_expiry_hours * 3600

    def create_session(self, email: str) -> Session:
        """Create a new session for an identity.

        Token is 32 random bytes (256 bits), URL-safe encoded.
        """
        token = secrets.token_urlsafe(32)
        now = now_utc()
        session = Session(
            token=token,
            email=email,
            created_at=now,
            expires_at=now + timedelta(seconds=self.lifetime_seconds),
        )

        self._valkey.set_json(
            self._key(token),
            {
                "email": session.email,
                "created_at": session.created_at.isoformat(),
                "expires_at": session.expires_at.isoformat(),
            },
            expire_seconds=self.lifetime_seconds,
        )
        return session

    def validate_session(self, token: str) -> Session:
        """Return the live session for a token.

        A stored value that cannot be read back as a session is treated
        like an unknown token and removed.

        Raises:
            SessionExpiredError: If token is unknown, revoked, expired or corrupt.
        """
        key = self._key(token)
        try:
            data = self._valkey.get_json(key)
            session = None if data is None else Session(
                token=token,
                email=data["email"],
                created_at=parse_iso(data["created_at"]),
                expires_at=parse_iso(data["expires_at"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding unreadable session record: {e}")
            self._valkey.delete(key)
            session = None

        if session is None:
            raise SessionExpiredError("Session not found or expired")

        if now_utc() > session.expires_at:
            self._valkey.delete(key)
            logger.info(f"Session for {session.email} expired on access")
            raise SessionExpiredError("Session expired")

        return session

    def revoke_session(self, token: str) -> None:
        """Revoke session (logout). Safe to call with a nonexistent token."""
        self._valkey.delete(self._key(token))
