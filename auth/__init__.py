"""Authentication: one-time passcodes, sessions and the request guard."""

from auth.exceptions import (
    AuthError,
    InvalidCredentialError,
    UnauthenticatedError,
    SessionExpiredError,
    RateLimitedError,
)
from auth.types import (
    Identity,
    Session,
    SendOtpRequest,
    VerifyOtpRequest,
    OtpIssueResult,
    AuthenticatedIdentity,
)
from auth.config import AuthConfig
from auth.database import IdentityDatabase
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.session import SessionManager
from auth.service import AuthService
from auth.security_middleware import AuthMiddleware
from auth.api import create_auth_router
