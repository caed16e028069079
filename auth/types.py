"""Pydantic models for auth domain."""

from datetime import datetime

from pydantic import BaseModel, Field


class Identity(BaseModel):
    """A user, keyed by email, as far as authentication is concerned."""

    email: str
    otp: str | None = None
    otp_expires_at: datetime | None = None
    created_at: datetime
    last_login_at: datetime | None = None

    model_config = {"from_attributes": True}

    def has_live_otp(self, now: datetime) -> bool:
        """True if a code is stored and has not yet expired."""
        return (
            self.otp is not None
            and self.otp_expires_at is not None
            and now <= self.otp_expires_at
        )


class Session(BaseModel):
    """An authenticated session."""

    token: str = Field(..., description="Opaque bearer token")
    email: str
    created_at: datetime
    expires_at: datetime


class SendOtpRequest(BaseModel):
    """Request payload for POST /auth/send-otp."""

    email: str = Field(..., max_length=320)


class VerifyOtpRequest(BaseModel):
    """Request payload for POST /auth/verify-otp."""

    email: str = Field(..., max_length=320)
    otp: str = Field(..., max_length=16)


class OtpIssueResult(BaseModel):
    """Outcome of issuing a code."""

    sent: bool
    delivered: bool
    expires_in_minutes: int
    otp: str | None = None  # Only populated when AuthConfig.expose_otp is on


class AuthenticatedIdentity(BaseModel):
    """Identity and freshly minted session returned after verification."""

    identity: Identity
    session: Session
