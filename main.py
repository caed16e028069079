"""Cadence API entry point.

Builds the FastAPI app: auth routes, the session guard, the song library
and a health check. Infrastructure clients are created once at startup
and fail fast if Postgres or Valkey is unreachable.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.base import success_response
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from api.songs import create_songs_router
from auth.api import create_auth_router
from auth.config import AuthConfig
from auth.database import IdentityDatabase
from auth.rate_limiter import RateLimiter
from auth.security_logger import SecurityLogger
from auth.security_middleware import AuthMiddleware
from auth.service import AuthService
from auth.session import SessionManager
from clients.email_client import EmailGatewayClient
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from core.services.media_service import MediaService

logger = logging.getLogger(__name__)


def build_auth_service(
    config: AuthConfig,
    postgres: PostgresClient,
    valkey: ValkeyClient,
    email_client: EmailGatewayClient | None,
) -> tuple[AuthService, SessionManager]:
    """Wire the auth components around shared clients."""
    session_manager = SessionManager(valkey, config)
    auth_service = AuthService(
        config=config,
        identity_db=IdentityDatabase(postgres),
        session_manager=session_manager,
        send_limiter=RateLimiter(
            valkey, "send_otp", config.send_rate_limit_attempts, config.rate_limit_window_minutes
        ),
        verify_limiter=RateLimiter(
            valkey, "verify_otp", config.verify_rate_limit_attempts, config.rate_limit_window_minutes
        ),
        security_logger=SecurityLogger(postgres),
        email_client=email_client,
    )
    return auth_service, session_manager


def create_app(
    config: AuthConfig,
    postgres: PostgresClient,
    valkey: ValkeyClient,
    email_client: EmailGatewayClient | None = None,
) -> FastAPI:
    """FastAPI app with injected infrastructure clients."""
    auth_service, session_manager = build_auth_service(config, postgres, valkey, email_client)
    media_service = MediaService(postgres)

    app = FastAPI(title=config.app_name)

    # Last added runs first: CORS, request ID, then the session guard
    app.add_middleware(AuthMiddleware, session_manager=session_manager)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000").split(","),
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )
    register_error_handlers(app)

    app.include_router(create_auth_router(auth_service, config.cookie_secure), prefix="/auth")
    app.include_router(create_songs_router(media_service))

    @app.get("/health")
    async def health():
        services = {"email": auth_service.has_delivery_channel}
        for name, client in (("postgres", postgres), ("valkey", valkey)):
            try:
                services[name] = client.ping()
            except Exception as e:
                logger.warning(f"Health check: {name} unreachable: {e}")
                services[name] = False
        status = "ok" if services["postgres"] and services["valkey"] else "degraded"
        return success_response({"status": status, "services": services})

    return app


def create_app_from_vault() -> FastAPI:
    """Resolve secrets from Vault and build the production app."""
    from clients.vault_client import get_database_url, get_email_config, get_valkey_url

    config = AuthConfig.from_env()
    postgres = PostgresClient(get_database_url())
    valkey = ValkeyClient(get_valkey_url())

    email_config = get_email_config()
    email_client = EmailGatewayClient(**email_config) if email_config else None
    if email_client is None:
        logger.warning("Email not configured - OTPs will be written to the log")

    return create_app(config, postgres, valkey, email_client)


def configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    import uvicorn

    load_dotenv(Path(__file__).parent / ".env")
    configure_logging()
    uvicorn.run(create_app_from_vault(), host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
