"""Signed session credentials (JWT)."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import jwt

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionIssuer:
    """Mints and verifies signed, time-bounded session tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expiration_minutes: int = 60,
        access_expiration_minutes: int = 15,
        refresh_expiration_days: int = 7,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret_key:
            raise RuntimeError("JWT_SECRET is not configured.")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expiration = timedelta(minutes=expiration_minutes)
        self.access_expiration = timedelta(minutes=access_expiration_minutes)
        self.refresh_expiration = timedelta(days=refresh_expiration_days)
        self._clock = clock

    def issue(self, account_id: int, email: str, role: str) -> str:
        """
        Create a single session token.

        Args:
            account_id: Subject of the token
            email: Account email
            role: Account role tag

        Returns:
            Encoded JWT
        """
        return self._encode(account_id, email, role, ACCESS, self.expiration)

    def issue_pair(self, account_id: int, email: str, role: str) -> Dict[str, str]:
        """Create a short-lived access token and a long-lived refresh token."""
        return {
            "access_token": self._encode(account_id, email, role, ACCESS, self.access_expiration),
            "refresh_token": self._encode(
                account_id, email, role, REFRESH, self.refresh_expiration
            ),
        }

    def verify(self, token: str, token_type: str = ACCESS) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a session token.

        Returns:
            Decoded payload if valid, None on bad signature, malformed token,
            expiry or a token of another type.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Rejected expired session token")
            return None
        except jwt.InvalidTokenError:
            return None

        if payload.get("type") != token_type:
            return None
        return payload

    def _encode(
        self, account_id: int, email: str, role: str, token_type: str, lifetime: timedelta
    ) -> str:
        now = self._clock()
        payload = {
            "sub": str(account_id),
            "email": email,
            "role": role,
            "type": token_type,
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
