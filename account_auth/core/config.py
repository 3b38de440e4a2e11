import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "change-me"


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.environment = os.getenv("APP_ENV", "development").strip().lower()
        database_path = os.getenv("DATABASE_PATH", "data/accounts.db")
        self.database_path = database_path if database_path == ":memory:" else Path(database_path).resolve()
        self.jwt_secret = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.jwt_expiration_minutes = self._get_int("JWT_EXPIRATION_MINUTES", default=60)
        self.access_token_minutes = self._get_int("ACCESS_TOKEN_MINUTES", default=15)
        self.refresh_token_days = self._get_int("REFRESH_TOKEN_DAYS", default=7)
        self.confirmation_token_minutes = self._get_int("CONFIRMATION_TOKEN_MINUTES", default=60)
        self.reset_token_minutes = self._get_int("RESET_TOKEN_MINUTES", default=15)
        self.bcrypt_rounds = self._get_int("BCRYPT_ROUNDS", default=12)
        self.smtp_host = os.getenv("SMTP_HOST", "")
        self.smtp_port = self._get_int("SMTP_PORT", default=587)
        self.smtp_username = os.getenv("SMTP_USERNAME", "")
        self.smtp_password = os.getenv("SMTP_PASSWORD", "")
        self.smtp_from_email = os.getenv("SMTP_FROM_EMAIL", "")
        self.smtp_from_name = os.getenv("SMTP_FROM_NAME", "Accounts")
        self.public_base_url = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")
        self.frontend_base_url = os.getenv("FRONTEND_BASE_URL", "http://localhost:3000")
        self.default_account_email = os.getenv("DEFAULT_ACCOUNT_EMAIL")
        self.default_account_password = os.getenv("DEFAULT_ACCOUNT_PASSWORD")
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]
        self._check_signing_key()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def _check_signing_key(self) -> None:
        if self.jwt_secret != DEFAULT_JWT_SECRET:
            return
        if self.is_production:
            raise RuntimeError("JWT_SECRET must be configured in production.")
        logger.warning("JWT_SECRET is using the default value. Configure a secure secret in production.")

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc
