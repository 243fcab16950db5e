"""Authentication configuration."""

from pydantic import BaseModel, Field, field_validator


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Durations are in their natural units (minutes for one-time codes,
    days for bearer tokens). The token signing secret is not part of this
    model; it comes from Vault and is handed to TokenIssuer directly.
    """

    # One-time code settings
    otp_expiry_minutes: int = Field(
        default=10,
        description="How long a one-time code remains valid",
        ge=1,
        le=60,
    )

    # Bearer token settings
    token_expiry_days: int = Field(
        default=10,
        description="Bearer token lifetime in days",
        ge=1,
        le=90,
    )
    token_algorithm: str = Field(
        default="HS256",
        description="JWT signing algorithm (HMAC family)",
        pattern=r"^HS(256|384|512)$",
    )

    # Registration
    allowed_email_domains: list[str] = Field(
        default=["uniport.edu.ng"],
        description="Institutional email domains allowed to register (subdomains included)",
        min_length=1,
    )

    # Application
    app_name: str = Field(
        default="Uniport Materials",
        description="Application name for emails",
    )

    @field_validator("allowed_email_domains")
    @classmethod
    def normalize_domains(cls, domains: list[str]) -> list[str]:
        """Lowercase and strip leading '@' / '.' from configured domains."""
        normalized = [d.strip().lower().lstrip("@.") for d in domains]
        if any(not d for d in normalized):
            raise ValueError("allowed_email_domains must not contain empty entries")
        return normalized

    def is_allowed_email(self, email: str) -> bool:
        """True if the email's domain is an allowed domain or a subdomain of one."""
        _, at, domain = email.strip().lower().rpartition("@")
        if not at or not domain:
            return False
        return any(
            domain == allowed or domain.endswith(f".{allowed}")
            for allowed in self.allowed_email_domains
        )
