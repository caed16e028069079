"""Security event logging for the auth audit trail.

Append-only log to the security_events table, mirrored to the
application log at INFO level.
"""

import logging
from enum import Enum
from typing import Any

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class SecurityEvent(Enum):
    """Auth security event types."""

    OTP_REQUESTED = "otp_requested"
    OTP_SENT = "otp_sent"
    OTP_DELIVERY_FAILED = "otp_delivery_failed"
    OTP_VERIFIED = "otp_verified"
    OTP_FAILED = "otp_failed"
    OTP_EXPIRED = "otp_expired"
    SESSION_CREATED = "session_created"
    SESSION_REVOKED = "session_revoked"
    RATE_LIMITED = "rate_limited"


class SecurityLogger:
    """Append-only security event logger."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def log(
        self,
        event: SecurityEvent,
        email: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Record a security event."""
        logger.info(f"security event {event.value} email={email} ip={ip_address}")
        self._db.execute_returning(
            """INSERT INTO security_events
               (event_type, email, ip_address, user_agent, details, created_at)
               VALUES (%s, %s, %s, %s, %s, %s)
               RETURNING id""",
            (
                event.value,
                email,
                ip_address,
                user_agent,
                Json(details) if details else None,
                now_utc(),
            ),
        )
