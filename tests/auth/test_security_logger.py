"""Tests for SecurityLogger writes."""

from unittest.mock import Mock
from uuid import uuid4

from psycopg2.extras import Json

from auth.security_logger import SecurityEvent, SecurityLogger
from clients.postgres_client import PostgresClient


class TestLog:
    def test_inserts_event_row(self):
        postgres = Mock(spec=PostgresClient)
        account_id = uuid4()

        SecurityLogger(postgres).log(
            SecurityEvent.OTP_SENT,
            email="student@uniport.edu.ng",
            account_id=account_id,
            details={"attempt": 1},
        )

        query, params = postgres.execute_returning.call_args.args
        assert "INSERT INTO security_events" in query
        assert params[0] == "otp_sent"
        assert params[1] == "student@uniport.edu.ng"
        assert params[2] == str(account_id)
        assert isinstance(params[3], Json)

    def test_optional_fields_are_null(self):
        postgres = Mock(spec=PostgresClient)

        SecurityLogger(postgres).log(SecurityEvent.OTP_FAILED)

        _, params = postgres.execute_returning.call_args.args
        assert params[1:4] == (None, None, None)
