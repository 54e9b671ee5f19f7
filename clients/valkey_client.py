"""
Valkey (Redis-compatible) client for cross-process locks.

Simple wrapper around redis-py. Connection URL from Vault.
Fail-fast: raises on connection failure, never returns fallback values.
"""

import logging

import redis

logger = logging.getLogger(__name__)

# Delete a key only if it still holds the caller's token, atomically.
_COMPARE_AND_DELETE = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class ValkeyClient:
    """
    Redis-compatible client for Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        if client.set_if_absent("lock:key", token, expire_seconds=30):
            ...
            client.delete_if_equals("lock:key", token)
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
        self._compare_and_delete = self._client.register_script(_COMPARE_AND_DELETE)
        logger.info("ValkeyClient connected")

    def ping(self) -> bool:
        """
        Health check.

        Returns True if Valkey responds.
        Raises redis.ConnectionError if unreachable.
        """
        self._client.ping()
        return True

    def get(self, key: str) -> str | None:
        """Get value by key. None if the key doesn't exist."""
        return self._client.get(key)

    def set_if_absent(self, key: str, value: str, expire_seconds: int) -> bool:
        """
        Set key only if it does not exist, with expiration.

        Returns True if the key was set, False if it already existed.
        """
        return bool(self._client.set(key, value, nx=True, ex=expire_seconds))

    def delete_if_equals(self, key: str, value: str) -> bool:
        """
        Delete key only if it currently holds value.

        Returns True if the key was deleted.
        """
        return self._compare_and_delete(keys=[key], args=[value]) == 1

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
        logger.info("ValkeyClient closed")
