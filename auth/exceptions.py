"""Typed exceptions for auth failures."""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""


class InvalidOTPError(AuthError):
    """
    One-time code is wrong, expired, or was never issued.

    All three cases share this type and message so callers cannot tell
    which one occurred.
    """


class OTPDeliveryError(AuthError):
    """The code could not be delivered to the account's email."""


class InvalidTokenError(AuthError):
    """Bearer token has a bad signature, malformed payload, or has expired."""


class AccountNotFoundError(AuthError):
    """Email not associated with any account."""


class AccountExistsError(AuthError):
    """Registration attempted for an email that already has an account."""


class EmailDomainNotAllowedError(AuthError):
    """Registration attempted with a non-institutional email address."""


class NotAuthenticatedError(AuthError):
    """Request carries no usable bearer credential."""


class ForbiddenError(AuthError):
    """Authenticated identity lacks the role the operation requires."""
