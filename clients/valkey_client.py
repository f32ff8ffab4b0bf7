"""
Valkey (Redis-compatible) client for console state.

Holds backend tokens and document number sequences. Thin wrapper around
redis-py; the connection URL comes from Vault. Fail-fast: raises on
connection failure, never returns fallback values.
"""

import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Redis-compatible client for Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        client.set("billing:auth:default:access_token", token)
        seq = client.incr("billing:seq:RCT:acme")
    """

    def __init__(self, url: str):
        """
        Initialize Valkey connection.

        Args:
            url: Redis-compatible connection URL (e.g., redis://localhost:6379/0)

        Raises:
            redis.ConnectionError: If connection fails
        """
        self._client = redis.from_url(url, decode_responses=True)
        # Verify connectivity immediately (fail-fast)
        self._client.ping()
        logger.info("ValkeyClient connected")

    def ping(self) -> bool:
        """Health check. Raises redis.ConnectionError if unreachable."""
        self._client.ping()
        return True

    def get(self, key: str) -> str | None:
        """Value for key, None if the key doesn't exist."""
        return self._client.get(key)

    def set(self, key: str, value: str, expire_seconds: int | None = None) -> None:
        """Set key to value, optionally with a TTL in seconds."""
        if expire_seconds is not None:
            self._client.setex(key, expire_seconds, value)
        else:
            self._client.set(key, value)

    def delete(self, key: str) -> bool:
        """Delete key. True if it existed."""
        return self._client.delete(key) > 0

    def incr(self, key: str) -> int:
        """
        Atomically increment key by 1.

        Creates key with value 1 if it doesn't exist. Safe across concurrent
        console sessions because the server does the increment.
        """
        return self._client.incr(key)

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
        logger.info("ValkeyClient closed")
