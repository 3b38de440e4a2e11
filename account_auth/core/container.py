from dataclasses import dataclass

from ..application.services.auth_service import AuthService
from ..infrastructure.persistence.sqlite import SQLiteAccountRepository
from ..services.email_service import EmailService
from ..services.session_issuer import SessionIssuer
from .config import Settings


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    accounts: SQLiteAccountRepository
    email_service: EmailService
    session_issuer: SessionIssuer
    auth_service: AuthService
