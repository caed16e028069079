"""Authentication configuration."""

import os

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Authentication configuration.

    Durations use their natural units: minutes for codes and rate limit
    windows, hours for sessions.
    """

    # One-time passcodes
    otp_expiry_minutes: int = Field(
        default=10,
        description="How long an issued code remains valid",
        ge=1,
        le=60,
    )
    expose_otp: bool = Field(
        default=False,
        description="Test mode: echo the plaintext code in send-otp responses",
    )

    # Sessions
    session_expiry_hours: int = Field(
        default=24,
        description="Session lifetime in hours, measured from creation",
        ge=1,
        le=720,
    )
    cookie_secure: bool = Field(
        default=True,
        description="Set the Secure flag on the session cookie",
    )

    # Rate limiting
    send_rate_limit_attempts: int = Field(
        default=5,
        description="Max send-otp requests per email per window",
        ge=1,
        le=20,
    )
    verify_rate_limit_attempts: int = Field(
        default=5,
        description="Max failed verifications per email per window",
        ge=1,
        le=20,
    )
    rate_limit_window_minutes: int = Field(
        default=15,
        description="Rate limit window duration",
        ge=1,
        le=60,
    )

    app_name: str = Field(
        default="Cadence",
        description="Application name used in emails",
    )

    @classmethod
    def from_env(cls) -> "AuthConfig":
        """Build config, letting CADENCE_* environment variables override defaults."""
        overrides = {}
        if "CADENCE_EXPOSE_OTP" in os.environ:
            overrides["expose_otp"] = os.environ["CADENCE_EXPOSE_OTP"].lower() in ("1", "true", "yes")
        if "CADENCE_COOKIE_SECURE" in os.environ:
            overrides["cookie_secure"] = os.environ["CADENCE_COOKIE_SECURE"].lower() in ("1", "true", "yes")
        if "CADENCE_SESSION_EXPIRY_HOURS" in os.environ:
            overrides["session_expiry_hours"] = int(os.environ["CADENCE_SESSION_EXPIRY_HOURS"])
        return cls(**overrides)
