"""Pydantic models for auth domain."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class Role(str, Enum):
    """Account role carried into bearer tokens."""

    USER = "user"
    ADMIN = "admin"


class Account(BaseModel):
    """A registered account."""

    id: UUID
    email: EmailStr
    role: Role = Role.USER
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}


class OTPRecord(BaseModel):
    """The live one-time code for an email."""

    email: EmailStr
    code: str = Field(..., pattern=r"^\d{6}$")
    expires_at: datetime


class TokenClaims(BaseModel):
    """Identity decoded from a verified bearer token."""

    account_id: UUID
    email: EmailStr
    role: Role
    issued_at: datetime
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class AuthenticatedAccount(BaseModel):
    """Account plus freshly issued bearer token after OTP verification."""

    account: Account
    token: str


class EmailRequest(BaseModel):
    """Request payload carrying just an email (register, request-otp)."""

    email: EmailStr


class VerifyOTPRequest(BaseModel):
    """Request payload for OTP verification."""

    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=32)
