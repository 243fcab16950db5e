"""Auth event trail.

Registration, code issue/delivery/verification and role changes each
append one security_events row and an INFO log line.
"""

import logging
from enum import Enum
from typing import Any
from uuid import UUID

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class SecurityEvent(Enum):
    ACCOUNT_REGISTERED = "account_registered"
    REGISTRATION_REJECTED = "registration_rejected"
    OTP_REQUESTED = "otp_requested"
    OTP_SENT = "otp_sent"
    OTP_DELIVERY_FAILED = "otp_delivery_failed"
    OTP_VERIFIED = "otp_verified"
    OTP_FAILED = "otp_failed"
    TOKEN_ISSUED = "token_issued"
    ROLE_CHANGED = "role_changed"


class SecurityLogger:
    """Append-only writer for security_events. Never logs codes or tokens."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def log(
        self,
        event: SecurityEvent,
        email: str | None = None,
        account_id: UUID | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        subject = email or account_id or "anonymous"
        logger.info(f"{event.value}: {subject}" + (f" {details}" if details else ""))

        self._db.execute_returning(
            """INSERT INTO security_events (event_type, email, account_id, details, created_at)
               VALUES (%s, %s, %s, %s, %s)
               RETURNING id""",
            (
                event.value,
                email,
                str(account_id) if account_id else None,
                Json(details) if details else None,
                now_utc(),
            ),
        )
