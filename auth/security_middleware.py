"""Security middleware for FastAPI - session validation and identity context."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from auth.session import SessionManager
from auth.types import Session
from auth.exceptions import SessionExpiredError
from api.base import error_response, ErrorCodes
from utils.user_context import set_current_email, clear_current_email

SESSION_COOKIE = "session_token"


def _header_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "").strip()
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer":
        return value.strip() or None
    return header


def session_token_candidates(request: Request) -> list[str]:
    """Session tokens carried by the request, Authorization header first.

    The header may carry either 'Bearer <token>' or the bare token. A
    browser can keep sending a stale cookie alongside an explicit header,
    so both are returned and callers try them in order.
    """
    tokens = []
    header_token = _header_token(request)
    if header_token:
        tokens.append(header_token)

    cookie_token = request.cookies.get(SESSION_COOKIE)
    if cookie_token and cookie_token not in tokens:
        tokens.append(cookie_token)

    return tokens


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates the session and sets identity context.

    For protected routes:
    1. Collects session tokens (Authorization header, then cookie)
    2. Accepts the first one SessionManager validates
    3. Sets email and session on request.state and the identity contextvar
    4. Clears context after the request completes

    Public paths bypass authentication entirely.
    """

    PUBLIC_PATHS = [
        "/auth/send-otp",
        "/auth/verify-otp",
        "/auth/logout",
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def __init__(self, app, session_manager: SessionManager):
        super().__init__(app)
        self._session_manager = session_manager

    def _is_public_path(self, path: str) -> bool:
        return any(path == p or path.startswith(p + "/") for p in self.PUBLIC_PATHS)

    def _first_live_session(self, tokens: list[str]) -> Session | None:
        for token in tokens:
            try:
                return self._session_manager.validate_session(token)
            except SessionExpiredError:
                continue
        return None

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or self._is_public_path(request.url.path):
            return await call_next(request)

        tokens = session_token_candidates(request)
        if not tokens:
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.NOT_AUTHENTICATED,
                    "Authentication required",
                ).model_dump(mode="json"),
            )

        session = self._first_live_session(tokens)
        if session is None:
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.SESSION_EXPIRED,
                    "Session has expired",
                ).model_dump(mode="json"),
            )

        set_current_email(session.email)
        request.state.email = session.email
        request.state.session = session

        try:
            return await call_next(request)
        finally:
            clear_current_email()
