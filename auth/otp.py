"""One-time passcode generation and shape checks."""

import hmac
import re
import secrets

OTP_MIN = 100000
OTP_MAX = 999999

_OTP_PATTERN = re.compile(r"[0-9]{6}")


def generate_otp() -> str:
    """Uniform draw over [100000, 999999] from the OS CSPRNG."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def is_well_formed(otp: str) -> bool:
    return _OTP_PATTERN.fullmatch(otp) is not None


def otp_matches(expected: str, submitted: str) -> bool:
    """Constant-time comparison."""
    return hmac.compare_digest(expected.encode("utf-8"), submitted.encode("utf-8"))


def normalize_email(email: str) -> str:
    """
    Lowercase and trim an email address.

    Raises:
        ValueError: If the address has no '@'
    """
    email = email.strip().lower()
    if "@" not in email:
        raise ValueError("Valid email required")
    return email
