"""Authentication service - orchestrates the email one-time code flow."""

import hmac
import secrets
from datetime import timedelta

from auth.config import AuthConfig
from auth.database import AccountDatabase
from auth.otp_ledger import OTPLedger
from auth.tokens import TokenIssuer
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.types import Account, AuthenticatedAccount, OTPRecord
from auth.exceptions import (
    AccountExistsError,
    AccountNotFoundError,
    EmailDomainNotAllowedError,
    InvalidOTPError,
    OTPDeliveryError,
)
from clients.email_client import EmailGatewayClient, EmailGatewayError
from utils.timezone import now_utc


OTP_MIN = 100000
OTP_MAX = 999999


def generate_otp() -> str:
    """Uniformly random six-digit code in [100000, 999999]."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


class AuthService:
    """Orchestrates one-time code authentication.

    Handles:
    - Registration of institutional email addresses
    - Code requests (generate, store, deliver)
    - Code verification (single use) and bearer token issue

    Known race: concurrent code requests for one email are last-write-wins
    on the ledger; only the most recently stored code verifies.
    """

    INVALID_OTP_MESSAGE = "Invalid or expired OTP"

    def __init__(
        self,
        config: AuthConfig,
        account_db: AccountDatabase,
        otp_ledger: OTPLedger,
        token_issuer: TokenIssuer,
        email_client: EmailGatewayClient,
        security_logger: SecurityLogger,
    ):
        self._config = config
        self._account_db = account_db
        self._otp_ledger = otp_ledger
        self._token_issuer = token_issuer
        self._email_client = email_client
        self._security_logger = security_logger

    def register(self, email: str) -> Account:
        """Create an account for an institutional email and send its first code.

        Raises:
            AccountExistsError: If the email already has an account.
            EmailDomainNotAllowedError: If the domain is not an allowed one.
            OTPDeliveryError: If the code could not be emailed.
        """
        email = email.lower().strip()

        if self._account_db.get_account_by_email(email) is not None:
            self._security_logger.log(
                SecurityEvent.REGISTRATION_REJECTED,
                email=email,
                details={"reason": "already_exists"},
            )
            raise AccountExistsError("User already exists")

        if not self._config.is_allowed_email(email):
            self._security_logger.log(
                SecurityEvent.REGISTRATION_REJECTED,
                email=email,
                details={"reason": "domain_not_allowed"},
            )
            raise EmailDomainNotAllowedError("Not a valid institutional email")

        account = self._account_db.create_account(email)

        self._security_logger.log(
            SecurityEvent.ACCOUNT_REGISTERED,
            email=account.email,
            account_id=account.id,
        )

        self._issue_otp(account)
        return account

    def request_otp(self, email: str) -> Account:
        """Generate, store and email a fresh code for an existing account.

        Any code previously issued for the email stops working.

        Raises:
            AccountNotFoundError: If no account has this email.
            OTPDeliveryError: If the code could not be emailed.
        """
        email = email.lower().strip()

        account = self._account_db.get_account_by_email(email)
        if account is None:
            self._security_logger.log(
                SecurityEvent.OTP_FAILED,
                email=email,
                details={"reason": "account_not_found"},
            )
            raise AccountNotFoundError("User not found")

        self._issue_otp(account)
        return account

    def _issue_otp(self, account: Account) -> None:
        """Store a new code for account and deliver it.

        On delivery failure the stored code is removed again, since the
        account holder never received it.
        """
        now = now_utc()
        record = OTPRecord(
            email=account.email,
            code=generate_otp(),
            expires_at=now + timedelta(minutes=self._config.otp_expiry_minutes),
        )

        # Store errors propagate as-is (redis errors), distinct from delivery errors
        self._otp_ledger.put(record)

        self._security_logger.log(
            SecurityEvent.OTP_REQUESTED,
            email=account.email,
            account_id=account.id,
        )

        try:
            self._email_client.send_otp(
                email=account.email,
                code=record.code,
                expiry_minutes=self._config.otp_expiry_minutes,
                app_name=self._config.app_name,
            )
        except EmailGatewayError as e:
            self._otp_ledger.delete(account.email)
            self._security_logger.log(
                SecurityEvent.OTP_DELIVERY_FAILED,
                email=account.email,
                account_id=account.id,
                details={"error": str(e)},
            )
            raise OTPDeliveryError("Failed to send OTP") from e

        self._security_logger.log(
            SecurityEvent.OTP_SENT,
            email=account.email,
            account_id=account.id,
        )

    def verify_otp(self, email: str, code: str) -> AuthenticatedAccount:
        """Check a submitted code, consume it, and issue a bearer token.

        Absent, expired and mismatched codes fail identically.
        There is no attempt counter: the 6-digit space is only protected
        by the code's expiry window.

        Raises:
            InvalidOTPError: If the code is absent, expired, or wrong.
            AccountNotFoundError: If the account disappeared after the code was issued.
        """
        email = email.lower().strip()
        code = code.strip()

        record = self._otp_ledger.get(email)

        if record is None or not hmac.compare_digest(record.code.encode(), code.encode()):
            self._security_logger.log(
                SecurityEvent.OTP_FAILED,
                email=email,
                details={"reason": "no_code" if record is None else "mismatch"},
            )
            raise InvalidOTPError(self.INVALID_OTP_MESSAGE)

        # Single use: a lost delete race means another request consumed it
        if not self._otp_ledger.delete(email):
            self._security_logger.log(
                SecurityEvent.OTP_FAILED,
                email=email,
                details={"reason": "already_consumed"},
            )
            raise InvalidOTPError(self.INVALID_OTP_MESSAGE)

        account = self._account_db.get_account_by_email(email)
        if account is None:
            raise AccountNotFoundError("User not found")

        self._account_db.update_last_login(account.id)
        token = self._token_issuer.issue(account)

        self._security_logger.log(
            SecurityEvent.OTP_VERIFIED,
            email=account.email,
            account_id=account.id,
        )
        self._security_logger.log(
            SecurityEvent.TOKEN_ISSUED,
            email=account.email,
            account_id=account.id,
        )

        return AuthenticatedAccount(account=account, token=token)
