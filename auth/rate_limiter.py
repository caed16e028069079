"""Per-email rate limiting for code requests and failed verifications.

Counters live in Valkey with a sliding TTL - each counted attempt resets
the expiry, so hammering an endpoint keeps extending the lockout.
"""

from clients.valkey_client import ValkeyClient
from auth.exceptions import RateLimitedError


class RateLimiter:
    """Sliding-window attempt counter keyed by scope and email."""

    KEY_PREFIX = "ratelimit:"

    def __init__(self, valkey: ValkeyClient, scope: str, max_attempts: int, window_minutes: int):
        self._valkey = valkey
        self._scope = scope
        self._max_attempts = max_attempts
        self._window_seconds = window_minutes * 60

    def _key(self, email: str) -> str:
        return f"{self.KEY_PREFIX}{self._scope}:{email.lower()}"

    def _raise_limited(self, key_email: str) -> None:
        ttl = self._valkey.ttl(self._key(key_email))
        raise RateLimitedError(retry_after_seconds=max(ttl, 1))

    def check_rate_limit(self, email: str) -> None:
        """Count this attempt and reject it if over the limit.

        Raises:
            RateLimitedError: If rate limit exceeded.
        """
        key = self._key(email)
        count = self._valkey.incr(key)
        self._valkey.expire(key, self._window_seconds)

        if count > self._max_attempts:
            self._raise_limited(email)

    def ensure_not_blocked(self, email: str) -> None:
        """Reject without counting if previous failures hit the limit.

        Raises:
            RateLimitedError: If the email is currently locked out.
        """
        current = self._valkey.get(self._key(email))
        if current is not None and int(current) >= self._max_attempts:
            self._raise_limited(email)

    def record_failure(self, email: str) -> int:
        """Count a failed attempt. Returns the running count."""
        key = self._key(email)
        count = self._valkey.incr(key)
        self._valkey.expire(key, self._window_seconds)
        return count

    def reset_rate_limit(self, email: str) -> None:
        """Forget all attempts (after successful login)."""
        self._valkey.delete(self._key(email))
