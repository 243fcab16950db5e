"""Authentication and authorization modules."""

from auth.exceptions import (
    AuthError,
    InvalidOTPError,
    OTPDeliveryError,
    InvalidTokenError,
    AccountNotFoundError,
    AccountExistsError,
    EmailDomainNotAllowedError,
    NotAuthenticatedError,
    ForbiddenError,
)
from auth.types import (
    Role,
    Account,
    OTPRecord,
    TokenClaims,
    AuthenticatedAccount,
    EmailRequest,
    VerifyOTPRequest,
)
from auth.config import AuthConfig
from auth.database import AccountDatabase
from auth.otp_ledger import OTPLedger
from auth.tokens import TokenIssuer
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.service import AuthService
from auth.security_middleware import AuthMiddleware, require_admin
from auth.api import create_auth_router
