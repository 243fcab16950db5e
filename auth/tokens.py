"""Bearer token issue and verification.

Tokens are HMAC-signed JWTs carrying the account id, email and role.
They are never stored: validity is the signature plus the exp claim,
so there is no server-side revocation.
"""

from datetime import timedelta

import jwt

from auth.config import AuthConfig
from auth.exceptions import InvalidTokenError
from auth.types import Account, Role, TokenClaims
from utils.timezone import now_utc, from_timestamp

_REQUIRED_CLAIMS = ["sub", "email", "role", "iat", "exp"]


class TokenIssuer:
    """Mints and verifies signed, time-bounded bearer tokens."""

    def __init__(self, secret: str, config: AuthConfig):
        if not secret:
            raise ValueError("token secret is required")
        self._secret = secret
        self._config = config

    def issue(self, account: Account) -> str:
        """Sign a token for account, valid for the configured number of days."""
        now = now_utc()
        payload = {
            "sub": str(account.id),
            "email": account.email,
            "role": account.role.value,
            "iat": now,
            "exp": now + timedelta(days=self._config.token_expiry_days),
        }
        return jwt.encode(payload, self._secret, algorithm=self._config.token_algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate token.

        Raises:
            InvalidTokenError: Bad signature, malformed payload, or expired.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._config.token_algorithm],
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        try:
            return TokenClaims(
                account_id=payload["sub"],
                email=payload["email"],
                role=Role(payload["role"]),
                issued_at=from_timestamp(payload["iat"]),
                expires_at=from_timestamp(payload["exp"]),
            )
        except (ValueError, TypeError) as e:
            raise InvalidTokenError(f"Malformed token payload: {e}")
