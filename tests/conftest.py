"""Shared test fixtures for the Cadence test suite.

Valkey and the identity store are replaced by small in-memory doubles
with the same method surface, so the auth flow runs without infrastructure.
"""

import json
from datetime import datetime
from pathlib import Path
from unittest.mock import Mock

import pytest
from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env", override=True)

import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from auth.config import AuthConfig
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger
from auth.service import AuthService
from auth.session import SessionManager
from auth.types import Identity
from clients.email_client import EmailGatewayClient
from utils.timezone import now_utc
from utils.user_context import clear_current_email


# =============================================================================
# TEST IDENTITY CONSTANTS
# =============================================================================

TEST_EMAIL = "listener@test.local"
TEST_EMAIL_B = "listener-b@test.local"


# =============================================================================
# IN-MEMORY DOUBLES
# =============================================================================


class FakeValkey:
    """Dict-backed stand-in for ValkeyClient. TTLs are recorded, never enforced."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    def ping(self) -> bool:
        return True

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, expire_seconds=None):
        self.data[key] = value
        if expire_seconds is not None:
            self.ttls[key] = expire_seconds
        else:
            self.ttls.pop(key, None)

    def delete(self, key):
        self.ttls.pop(key, None)
        return self.data.pop(key, None) is not None

    def ttl(self, key):
        if key not in self.data:
            return -2
        return self.ttls.get(key, -1)

    def incr(self, key):
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = str(value)
        return value

    def expire(self, key, seconds):
        if key not in self.data:
            return False
        self.ttls[key] = seconds
        return True

    def set_json(self, key, value, expire_seconds=None):
        self.set(key, json.dumps(value), expire_seconds)

    def get_json(self, key):
        value = self.get(key)
        return None if value is None else json.loads(value)


class FakeIdentityDatabase:
    """Dict-backed stand-in for IdentityDatabase with the same conditional consume."""

    def __init__(self):
        self.rows: dict[str, Identity] = {}

    def get_identity(self, email: str) -> Identity | None:
        return self.rows.get(email.lower())

    def upsert_otp(self, email: str, otp: str, expires_at: datetime) -> Identity:
        email = email.lower()
        existing = self.rows.get(email)
        identity = Identity(
            email=email,
            otp=otp,
            otp_expires_at=expires_at,
            created_at=existing.created_at if existing else now_utc(),
            last_login_at=existing.last_login_at if existing else None,
        )
        self.rows[email] = identity
        return identity

    def consume_otp(self, email: str, otp: str) -> Identity | None:
        identity = self.rows.get(email.lower())
        now = now_utc()
        if identity is None or identity.otp != otp or identity.otp_expires_at < now:
            return None
        updated = identity.model_copy(
            update={"otp": None, "otp_expires_at": None, "last_login_at": now}
        )
        self.rows[email.lower()] = updated
        return updated


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_identity_context():
    """Ensure clean identity context before and after each test."""
    clear_current_email()
    yield
    clear_current_email()


@pytest.fixture
def test_email() -> str:
    return TEST_EMAIL


@pytest.fixture
def test_email_b() -> str:
    return TEST_EMAIL_B


@pytest.fixture
def valkey():
    return FakeValkey()


@pytest.fixture
def identity_db():
    return FakeIdentityDatabase()


@pytest.fixture
def config():
    """Defaults except a fixed test-friendly cookie flag."""
    return AuthConfig(cookie_secure=False)


@pytest.fixture
def session_manager(valkey, config):
    return SessionManager(valkey, config)


@pytest.fixture
def security_logger():
    return Mock(spec=SecurityLogger)


@pytest.fixture
def mock_email_client():
    """Mock email client - no actual emails sent in tests."""
    mock = Mock(spec=EmailGatewayClient)
    mock.send_otp.return_value = None
    return mock


@pytest.fixture
def make_auth_service(config, identity_db, session_manager, valkey, security_logger):
    """Factory so tests can choose the email client (or none)."""

    def _make(email_client=None, auth_config=None):
        cfg = auth_config or config
        return AuthService(
            config=cfg,
            identity_db=identity_db,
            session_manager=session_manager,
            send_limiter=RateLimiter(
                valkey, "send_otp", cfg.send_rate_limit_attempts, cfg.rate_limit_window_minutes
            ),
            verify_limiter=RateLimiter(
                valkey, "verify_otp", cfg.verify_rate_limit_attempts, cfg.rate_limit_window_minutes
            ),
            security_logger=security_logger,
            email_client=email_client,
        )

    return _make


@pytest.fixture
def auth_service(make_auth_service, mock_email_client):
    """AuthService with in-memory stores and a mocked email gateway."""
    return make_auth_service(email_client=mock_email_client)
