"""Tests for auth/config.py - Auth configuration with validation."""

import pytest
from pydantic import ValidationError

from auth.config import AuthConfig


class TestAuthConfigDefaults:
    """Tests that AuthConfig has the documented defaults."""

    def test_otp_expiry_default(self):
        assert AuthConfig().otp_expiry_minutes == 10

    def test_session_expiry_default(self):
        assert AuthConfig().session_expiry_hours == 24

    def test_expose_otp_off_by_default(self):
        assert AuthConfig().expose_otp is False

    def test_rate_limit_defaults(self):
        config = AuthConfig()
        assert config.send_rate_limit_attempts == 5
        assert config.verify_rate_limit_attempts == 5
        assert config.rate_limit_window_minutes == 15


class TestAuthConfigValidation:
    """Tests that AuthConfig enforces validation bounds."""

    def test_otp_expiry_min_bound(self):
        with pytest.raises(ValidationError):
            AuthConfig(otp_expiry_minutes=0)

    def test_otp_expiry_max_bound(self):
        with pytest.raises(ValidationError):
            AuthConfig(otp_expiry_minutes=61)

    def test_session_expiry_min_bound(self):
        with pytest.raises(ValidationError):
            AuthConfig(session_expiry_hours=0)


class TestFromEnv:
    def test_defaults_without_env(self, monkeypatch):
        monkeypatch.delenv("CADENCE_EXPOSE_OTP", raising=False)
        monkeypatch.delenv("CADENCE_COOKIE_SECURE", raising=False)
        monkeypatch.delenv("CADENCE_SESSION_EXPIRY_HOURS", raising=False)

        assert AuthConfig.from_env() == AuthConfig()

    def test_expose_otp_opt_in(self, monkeypatch):
        monkeypatch.setenv("CADENCE_EXPOSE_OTP", "true")
        assert AuthConfig.from_env().expose_otp is True

    def test_cookie_secure_can_be_disabled(self, monkeypatch):
        monkeypatch.setenv("CADENCE_COOKIE_SECURE", "0")
        assert AuthConfig.from_env().cookie_secure is False

    def test_session_expiry_from_env(self, monkeypatch):
        monkeypatch.setenv("CADENCE_SESSION_EXPIRY_HOURS", "48")
        assert AuthConfig.from_env().session_expiry_hours == 48
