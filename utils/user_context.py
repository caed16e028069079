"""Propagate the authenticated identity through the call stack using contextvars."""

from contextlib import contextmanager
from contextvars import ContextVar

_current_email: ContextVar[str | None] = ContextVar("current_email", default=None)


def get_current_email() -> str:
    """
    Get the authenticated identity's email from context.

    Raises RuntimeError if no identity is set. Library code that needs an
    owner (song queries) must only run inside an authenticated request.
    """
    email = _current_email.get()
    if email is None:
        raise RuntimeError(
            "No identity in context. This usually means you're calling "
            "identity-scoped code outside of an authenticated request."
        )
    return email


def set_current_email(email: str) -> None:
    """Set current identity. Called by AuthMiddleware after validating the session."""
    _current_email.set(email)


def clear_current_email() -> None:
    """
    Clear identity context.

    Must be called in a finally block to prevent context leakage.
    """
    _current_email.set(None)


@contextmanager
def user_context(email: str):
    """
    Temporarily act as the given identity.

    Example:
        with user_context("listener@example.com"):
            songs = media_service.list_songs()
    """
    previous = _current_email.get()
    set_current_email(email)
    try:
        yield
    finally:
        if previous is None:
            clear_current_email()
        else:
            set_current_email(previous)
