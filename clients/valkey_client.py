"""
Valkey (Redis-compatible) client for sessions and rate limit counters.

Keys are namespaced per application so several services can share one
Valkey instance. Fail-fast: connection problems raise, never fall back.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Namespaced key/value access with native TTL expiry.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0", namespace="cadence")
        client.set_json("session:abc", {"email": "a@example.com"}, expire_seconds=86400)
        client.get_json("session:abc")
    """

    def __init__(self, url: str, namespace: str = "cadence"):
        """
        Connect and verify connectivity immediately.

        Raises:
            redis.ConnectionError: If Valkey is unreachable
        """
        self._client = redis.from_url(url, decode_responses=True)
        self._namespace = namespace
        self._client.ping()
        logger.info(f"ValkeyClient connected (namespace={namespace})")

    def _k(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    def ping(self) -> bool:
        """Health check. Raises redis.ConnectionError if unreachable."""
        self._client.ping()
        return True

    def get(self, key: str) -> str | None:
        """Get value; None when the key is absent or has expired."""
        return self._client.get(self._k(key))

    def set(self, key: str, value: str, expire_seconds: int | None = None) -> None:
        """Set value, with TTL when expire_seconds is given."""
        if expire_seconds is not None:
            self._client.setex(self._k(key), expire_seconds, value)
        else:
            self._client.set(self._k(key), value)

    def delete(self, key: str) -> bool:
        """Delete key. Returns True if it existed."""
        return self._client.delete(self._k(key)) > 0

    def ttl(self, key: str) -> int:
        """
        Remaining TTL in seconds.

        -2 if the key doesn't exist, -1 if it has no expiration.
        """
        return self._client.ttl(self._k(key))

    def incr(self, key: str) -> int:
        """Increment counter, creating it at 1. Returns the new value."""
        return self._client.incr(self._k(key))

    def expire(self, key: str, seconds: int) -> bool:
        """(Re)set the TTL of an existing key."""
        return bool(self._client.expire(self._k(key), seconds))

    def set_json(self, key: str, value: dict | list, expire_seconds: int | None = None) -> None:
        """Store a JSON-serialized value."""
        self.set(key, json.dumps(value), expire_seconds)

    def get_json(self, key: str) -> dict | list | None:
        """
        Load a JSON value.

        Raises ValueError if the stored value is not valid JSON.
        """
        value = self.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}")

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
        logger.info("ValkeyClient closed")
