from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.auth_service import AuthService
from ..domain.errors import StorageFailure
from ..infrastructure.persistence.sqlite import SQLiteAccountRepository
from ..presentation.api.routers import auth as auth_router
from ..services.credential_hasher import CredentialHasher
from ..services.email_service import EmailService
from ..services.session_issuer import SessionIssuer
from ..services.token_generator import TokenGenerator

logger = logging.getLogger(__name__)


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="Account Authentication Service", lifespan=_create_lifespan(settings))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router.router)

    @app.exception_handler(StorageFailure)
    async def storage_failure_handler(request: Request, exc: StorageFailure) -> JSONResponse:
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Something went wrong"},
        )

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"ok": True}

    return app


def build_container(settings: Settings) -> ApplicationContainer:
    accounts = SQLiteAccountRepository(settings.database_path)
    email_service = EmailService(
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_username=settings.smtp_username,
        smtp_password=settings.smtp_password,
        from_email=settings.smtp_from_email,
        from_name=settings.smtp_from_name,
        confirm_base_url=settings.public_base_url,
        reset_base_url=settings.frontend_base_url,
    )
    session_issuer = SessionIssuer(
        secret_key=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expiration_minutes=settings.jwt_expiration_minutes,
        access_expiration_minutes=settings.access_token_minutes,
        refresh_expiration_days=settings.refresh_token_days,
    )
    auth_service = AuthService(
        accounts=accounts,
        hasher=CredentialHasher(rounds=settings.bcrypt_rounds),
        token_generator=TokenGenerator(),
        session_issuer=session_issuer,
        notifier=email_service,
        confirmation_ttl=timedelta(minutes=settings.confirmation_token_minutes),
        reset_ttl=timedelta(minutes=settings.reset_token_minutes),
    )
    return ApplicationContainer(
        settings=settings,
        accounts=accounts,
        email_service=email_service,
        session_issuer=session_issuer,
        auth_service=auth_service,
    )


def _create_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        container = build_container(settings)
        if not container.email_service.enabled:
            logger.info("SMTP not configured; emails will be written to the log.")

        await container.auth_service.ensure_default_account(
            settings.default_account_email, settings.default_account_password
        )

        app.state.container = container  # type: ignore[attr-defined]

        try:
            yield
        finally:
            container.accounts.close()

    return lifespan
