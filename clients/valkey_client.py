"""
Valkey client backing the one-time code ledger.

redis-py speaks the Valkey protocol unchanged. Values are strings (JSON
for structured records) and the ledger's writes always carry a TTL, so
the server evicts stale codes on its own. Connection problems surface
as redis exceptions; there are no fallback values.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    String/JSON key-value access with expiry.

    Usage:
        store = ValkeyClient("redis://valkey:6379/0")
        store.set_json("otp:a@uniport.edu.ng", {"code": "123456"}, expire_seconds=600)
        store.get_json("otp:a@uniport.edu.ng")   # None after 600 s
    """

    def __init__(self, url: str):
        """
        Connect and ping once so a bad URL fails at startup.

        Raises:
            redis.ConnectionError: If the server is unreachable
        """
        self._client = redis.from_url(url, decode_responses=True)
        self._client.ping()
        logger.info("Connected to Valkey")

    def get(self, key: str) -> str | None:
        return self._client.get(key)

    def set(self, key: str, value: str, expire_seconds: int | None = None) -> None:
        """
        Write value, replacing both the old value and its TTL.

        expire_seconds=None stores without expiry.

        Raises:
            ValueError: If expire_seconds is zero or negative
        """
        if expire_seconds is not None and expire_seconds <= 0:
            raise ValueError(f"expire_seconds must be positive, got {expire_seconds}")
        self._client.set(key, value, ex=expire_seconds)

    def delete(self, key: str) -> bool:
        """False when there was nothing to delete."""
        return bool(self._client.delete(key))

    def set_json(self, key: str, value: dict | list, expire_seconds: int | None = None) -> None:
        self.set(key, json.dumps(value), expire_seconds)

    def get_json(self, key: str) -> dict | list | None:
        """
        Decoded value, or None for a missing key.

        Raises:
            ValueError: If the stored value is not JSON
        """
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Key '{key}' does not hold JSON: {e}")
