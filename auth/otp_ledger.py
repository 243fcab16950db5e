"""One-time code ledger.

Codes are stored in Valkey under one key per email, with a TTL equal to
the code's validity window. Writing a new code replaces the old one, so an
email never has more than one live code. Expiry is enforced twice: by the
store's TTL and by comparing expires_at with the clock on read.
"""

import logging

from auth.types import OTPRecord
from clients.valkey_client import ValkeyClient
from utils.timezone import now_utc, parse_iso

logger = logging.getLogger(__name__)


class OTPLedger:
    """Valkey-backed mapping of email -> current one-time code."""

    KEY_PREFIX = "otp:"

    def __init__(self, valkey: ValkeyClient):
        self._valkey = valkey

    def _key(self, email: str) -> str:
        """Generate Valkey key for an email (normalized to lowercase)."""
        return f"{self.KEY_PREFIX}{email.strip().lower()}"

    def put(self, record: OTPRecord) -> None:
        """
        Store the code for record.email, replacing any live code.

        The key's TTL is the time remaining until record.expires_at.

        Raises:
            ValueError: If record.expires_at is not in the future.
        """
        remaining = int((record.expires_at - now_utc()).total_seconds())
        if remaining <= 0:
            raise ValueError("Cannot store a one-time code that has already expired")

        self._valkey.set_json(
            self._key(record.email),
            {
                "code": record.code,
                "expires_at": record.expires_at.isoformat(),
            },
            expire_seconds=remaining,
        )

    def get(self, email: str) -> OTPRecord | None:
        """Return the live code for email, or None if absent or expired."""
        data = self._valkey.get_json(self._key(email))
        if data is None:
            return None

        record = OTPRecord(
            email=email.strip().lower(),
            code=data["code"],
            expires_at=parse_iso(data["expires_at"]),
        )

        # Store TTL should already have evicted it
        if now_utc() >= record.expires_at:
            logger.info("Discarding expired one-time code still present in store")
            self._valkey.delete(self._key(email))
            return None

        return record

    def delete(self, email: str) -> bool:
        """
        Remove the code for email.

        Returns True if a code existed. Safe to call when none does.
        """
        return self._valkey.delete(self._key(email))
