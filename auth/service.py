"""Authentication service - orchestrates the OTP login flow."""

import logging
from datetime import timedelta
from typing import NoReturn

from auth.config import AuthConfig
from auth.database import IdentityDatabase
from auth.otp import generate_otp, is_well_formed, normalize_email, otp_matches
from auth.session import SessionManager
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.types import AuthenticatedIdentity, Identity, OtpIssueResult, Session
from auth.exceptions import InvalidCredentialError, RateLimitedError, SessionExpiredError
from clients.email_client import EmailGatewayClient, EmailGatewayError
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class AuthService:
    """Orchestrates OTP authentication.

    Handles:
    - Issuing codes (one live code per email, delivery best-effort)
    - Verifying and consuming codes
    - Session minting, validation and logout
    """

    def __init__(
        self,
        config: AuthConfig,
        identity_db: IdentityDatabase,
        session_manager: SessionManager,
        send_limiter: RateLimiter,
        verify_limiter: RateLimiter,
        security_logger: SecurityLogger,
        email_client: EmailGatewayClient | None = None,
    ):
        self._config = config
        self._identity_db = identity_db
        self._session_manager = session_manager
        self._send_limiter = send_limiter
        self._verify_limiter = verify_limiter
        self._security_logger = security_logger
        self._email_client = email_client

    @property
    def has_delivery_channel(self) -> bool:
        return self._email_client is not None

    def send_otp(
        self,
        email: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> OtpIssueResult:
        """Issue a fresh code for email.

        Flow:
        1. Normalize and superficially validate the email
        2. Check per-email send rate limit
        3. Generate code, upsert identity with code and expiry
        4. Deliver by email, or to the log when no gateway is configured

        A delivery failure is logged and recorded but the code stays valid.

        Raises:
            ValueError: If the email has no '@'.
            RateLimitedError: If too many codes were requested for this email.
        """
        email = normalize_email(email)

        try:
            self._send_limiter.check_rate_limit(email)
        except RateLimitedError:
            self._security_logger.log(
                SecurityEvent.RATE_LIMITED,
                email=email,
                ip_address=ip_address,
                user_agent=user_agent,
                details={"action": "send_otp"},
            )
            raise

        otp = generate_otp()
        expires_at = now_utc() + timedelta(minutes=self._config.otp_expiry_minutes)
        self._identity_db.upsert_otp(email, otp, expires_at)

        self._security_logger.log(
            SecurityEvent.OTP_REQUESTED,
            email=email,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        delivered = self._deliver(email, otp, ip_address)

        return OtpIssueResult(
            sent=True,
            delivered=delivered,
            expires_in_minutes=self._config.otp_expiry_minutes,
            otp=otp if self._config.expose_otp else None,
        )

    def _deliver(self, email: str, otp: str, ip_address: str | None) -> bool:
        """Send the code out-of-band. Returns True if an email went out."""
        if self._email_client is None:
            logger.info(f"OTP for {email}: {otp} (no email gateway configured)")
            return False

        try:
            self._email_client.send_otp(
                email=email,
                otp=otp,
                expires_in_minutes=self._config.otp_expiry_minutes,
                app_name=self._config.app_name,
            )
        except EmailGatewayError as e:
            logger.warning(f"OTP delivery to {email} failed, code remains valid: {e}")
            self._security_logger.log(
                SecurityEvent.OTP_DELIVERY_FAILED,
                email=email,
                ip_address=ip_address,
                details={"error": str(e)},
            )
            return False

        self._security_logger.log(SecurityEvent.OTP_SENT, email=email, ip_address=ip_address)
        return True

    def verify_otp(
        self,
        email: str,
        otp: str,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthenticatedIdentity:
        """Verify a code, consume it and mint a session.

        Raises:
            ValueError: If email or code are malformed.
            RateLimitedError: If too many failed attempts for this email.
            InvalidCredentialError: If no live code matches.
        """
        email = normalize_email(email)
        otp = otp.strip()
        if not is_well_formed(otp):
            raise ValueError("Email and 6-digit OTP required")

        self._verify_limiter.ensure_not_blocked(email)

        identity = self._identity_db.get_identity(email)
        now = now_utc()

        if identity is None or identity.otp is None or not otp_matches(identity.otp, otp):
            self._reject(email, ip_address, user_agent, SecurityEvent.OTP_FAILED, "mismatch")

        if not identity.has_live_otp(now):
            self._reject(email, ip_address, user_agent, SecurityEvent.OTP_EXPIRED, "expired")

        consumed = self._identity_db.consume_otp(email, otp)
        if consumed is None:
            # Replaced, expired or consumed between lookup and update
            self._reject(email, ip_address, user_agent, SecurityEvent.OTP_FAILED, "already_consumed")

        session = self._session_manager.create_session(consumed.email)

        self._send_limiter.reset_rate_limit(email)
        self._verify_limiter.reset_rate_limit(email)

        self._security_logger.log(
            SecurityEvent.OTP_VERIFIED,
            email=email,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._security_logger.log(
            SecurityEvent.SESSION_CREATED,
            email=email,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        return AuthenticatedIdentity(identity=consumed, session=session)

    def _reject(
        self,
        email: str,
        ip_address: str | None,
        user_agent: str | None,
        event: SecurityEvent,
        reason: str,
    ) -> NoReturn:
        """Count the failure, log it and raise InvalidCredentialError."""
        self._verify_limiter.record_failure(email)
        self._security_logger.log(
            event,
            email=email,
            ip_address=ip_address,
            user_agent=user_agent,
            details={"reason": reason},
        )
        raise InvalidCredentialError("Invalid or expired OTP")

    def logout(self, session_token: str, ip_address: str | None = None) -> None:
        """Revoke session. Safe to call with an invalid token."""
        try:
            email = self._session_manager.validate_session(session_token).email
        except SessionExpiredError:
            email = None

        self._session_manager.revoke_session(session_token)

        self._security_logger.log(
            SecurityEvent.SESSION_REVOKED,
            email=email,
            ip_address=ip_address,
        )

    def validate_session(self, token: str) -> Session:
        """Validate session token.

        Raises:
            SessionExpiredError: If session invalid or expired.
        """
        return self._session_manager.validate_session(token)

    def get_identity(self, email: str) -> Identity | None:
        """Identity record for an authenticated email."""
        return self._identity_db.get_identity(email)
