"""Propagate the authenticated identity through the call stack using contextvars."""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from auth.types import TokenClaims

_current_identity: ContextVar["TokenClaims | None"] = ContextVar(
    "current_identity", default=None
)


def get_current_identity() -> "TokenClaims":
    """
    Get the identity attached by the access guard.

    Raises RuntimeError if no identity is set. Code that needs an
    identity and runs outside an authenticated request is a bug.
    """
    identity = _current_identity.get()
    if identity is None:
        raise RuntimeError(
            "No identity set. This usually means you're calling "
            "account-scoped code outside of an authenticated request."
        )
    return identity


def get_current_account_id() -> UUID | None:
    """Account ID of the current identity, or None outside a request."""
    identity = _current_identity.get()
    return identity.account_id if identity is not None else None


def set_current_identity(identity: "TokenClaims") -> None:
    """
    Set current identity in context.

    Called by auth middleware after verifying the bearer token.
    """
    _current_identity.set(identity)


def clear_current_identity() -> None:
    """
    Clear identity context.

    Must be called in a finally block to prevent context leakage.
    """
    _current_identity.set(None)


@contextmanager
def identity_context(identity: "TokenClaims"):
    """
    Temporarily set the current identity.

    Used by tests to act as a given account outside a request.
    """
    previous = _current_identity.get()
    set_current_identity(identity)
    try:
        yield
    finally:
        if previous is None:
            clear_current_identity()
        else:
            set_current_identity(previous)
