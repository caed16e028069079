"""HTTP routes for authentication."""

import ipaddress

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from auth.service import AuthService
from auth.types import SendOtpRequest, VerifyOtpRequest
from auth.exceptions import InvalidCredentialError, RateLimitedError
from auth.security_middleware import SESSION_COOKIE, session_token_candidates
from api.base import success_response, error_response, ErrorCodes


def _get_client_ip(request: Request) -> str | None:
    """Extract valid IP address from request, or None if invalid."""
    if not request.client:
        return None
    host = request.client.host
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return None


def _rate_limited(e: RateLimitedError) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        headers={"Retry-After": str(e.retry_after_seconds)},
        content=error_response(
            ErrorCodes.RATE_LIMITED,
            f"Too many requests. Please wait {e.retry_after_seconds} seconds.",
        ).model_dump(mode="json"),
    )


def create_auth_router(auth_service: AuthService, cookie_secure: bool = True) -> APIRouter:
    """Create auth router with injected service."""
    router = APIRouter(tags=["auth"])

    @router.post("/send-otp")
    async def send_otp(request: Request, body: SendOtpRequest):
        """Issue a one-time code for the email.

        Malformed emails surface as ValueError and become 400 via the
        global handler.
        """
        try:
            result = auth_service.send_otp(
                email=body.email,
                ip_address=_get_client_ip(request),
                user_agent=request.headers.get("User-Agent"),
            )
        except RateLimitedError as e:
            return _rate_limited(e)

        if result.delivered:
            message = "OTP sent to your email"
        else:
            message = "OTP generated"

        data = {"message": message, "expires_in_minutes": result.expires_in_minutes}
        if result.otp is not None:
            data["otp"] = result.otp
        return success_response(data)

    @router.post("/verify-otp")
    async def verify_otp(request: Request, response: Response, body: VerifyOtpRequest):
        """Verify code and create session.

        Sets session_token cookie on success and returns the token for
        clients that prefer the Authorization header.
        """
        try:
            result = auth_service.verify_otp(
                email=body.email,
                otp=body.otp,
                ip_address=_get_client_ip(request),
                user_agent=request.headers.get("User-Agent"),
            )
        except InvalidCredentialError:
            return JSONResponse(
                status_code=400,
                content=error_response(
                    ErrorCodes.INVALID_CREDENTIAL,
                    "Invalid or expired OTP",
                ).model_dump(mode="json"),
            )
        except RateLimitedError as e:
            return _rate_limited(e)

        session = result.session
        response.set_cookie(
            key=SESSION_COOKIE,
            value=session.token,
            httponly=True,
            secure=cookie_secure,
            samesite="lax",
            max_age=int((session.expires_at - session.created_at).total_seconds()),
        )

        return success_response({
            "session_token": session.token,
            "email": result.identity.email,
            "expires_at": session.expires_at.isoformat(),
        })

    @router.post("/logout")
    async def logout(request: Request, response: Response):
        """Logout - revoke every session the request carries and clear cookie."""
        for session_token in session_token_candidates(request):
            auth_service.logout(
                session_token=session_token,
                ip_address=_get_client_ip(request),
            )

        response.delete_cookie(key=SESSION_COOKIE)
        return success_response({"message": "Logged out successfully"})

    @router.get("/user")
    async def get_current_user(request: Request):
        """Current authenticated identity (middleware sets request.state.email)."""
        email = getattr(request.state, "email", None)
        identity = auth_service.get_identity(email) if email else None

        if identity is None:
            return JSONResponse(
                status_code=401,
                content=error_response(
                    ErrorCodes.NOT_AUTHENTICATED,
                    "Authentication required",
                ).model_dump(mode="json"),
            )

        return success_response({
            "email": identity.email,
            "created_at": identity.created_at.isoformat(),
            "last_login_at": identity.last_login_at.isoformat() if identity.last_login_at else None,
        })

    return router
