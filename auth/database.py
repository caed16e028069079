"""Database operations for authentication.

Identities live in the `identities` table, keyed by lowercased email.
The code is stored on the identity row itself, so there is never more
than one live code per email.
"""

from datetime import datetime

from clients.postgres_client import PostgresClient
from auth.types import Identity
from utils.timezone import now_utc

_IDENTITY_COLUMNS = "email, otp, otp_expires_at, created_at, last_login_at"


class IdentityDatabase:
    """Database operations for identities."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def get_identity(self, email: str) -> Identity | None:
        """Find identity by email (case-insensitive)."""
        row = self._db.execute_single(
            f"SELECT {_IDENTITY_COLUMNS} FROM identities WHERE email = lower(%s)",
            (email,),
        )
        if row is None:
            return None
        return Identity.model_validate(row)

    def upsert_otp(self, email: str, otp: str, expires_at: datetime) -> Identity:
        """Create the identity or overwrite its code and expiry.

        Single statement, so concurrent issues for one email resolve to
        whichever write lands last.
        """
        rows = self._db.execute_returning(
            f"""INSERT INTO identities (email, otp, otp_expires_at, created_at)
                VALUES (lower(%s), %s, %s, %s)
                ON CONFLICT (email) DO UPDATE
                SET otp = EXCLUDED.otp, otp_expires_at = EXCLUDED.otp_expires_at
                RETURNING {_IDENTITY_COLUMNS}""",
            (email, otp, expires_at, now_utc()),
        )
        return Identity.model_validate(rows[0])

    def consume_otp(self, email: str, otp: str) -> Identity | None:
        """Clear the code if it is still the stored, unexpired one.

        Returns:
            The updated identity, or None if the code was already consumed,
            replaced or expired in the meantime.
        """
        now = now_utc()
        row = self._db.execute_single(
            f"""UPDATE identities
                SET otp = NULL, otp_expires_at = NULL, last_login_at = %s
                WHERE email = lower(%s) AND otp = %s AND otp_expires_at >= %s
                RETURNING {_IDENTITY_COLUMNS}""",
            (now, email, otp, now),
        )
        if row is None:
            return None
        return Identity.model_validate(row)
