from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ...domain.errors import (
    Conflict,
    DuplicateKeyError,
    EmailNotConfirmed,
    InvalidCredentials,
    InvalidOrExpiredToken,
    StaleTokenError,
    ValidationFailure,
)
from ...domain.models import Account, AccountView, PendingToken, TokenPurpose
from ...domain.ports.notification import Notifier
from ...domain.ports.persistence import AccountRepository
from ...services.credential_hasher import CredentialHasher
from ...services.session_issuer import SessionIssuer
from ...services.token_generator import TokenGenerator

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


class NotificationOutcome(str, enum.Enum):
    """Result of flows that must look identical to the caller either way."""

    TOKEN_ISSUED = "token_issued"
    NO_OP = "no_op"


@dataclass(frozen=True, slots=True)
class LoginResult:
    access_token: str
    token_type: str = "bearer"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthService:
    """Account lifecycle: registration, confirmation, login and password reset.

    An account is either unconfirmed or confirmed, and independently holds at
    most one pending single-use token tagged with its purpose. Consuming a
    token clears it in the same conditional save, so a token succeeds at most
    once even under concurrent requests.
    """

    def __init__(
        self,
        accounts: AccountRepository,
        hasher: CredentialHasher,
        token_generator: TokenGenerator,
        session_issuer: SessionIssuer,
        notifier: Notifier,
        confirmation_ttl: timedelta = timedelta(hours=1),
        reset_ttl: timedelta = timedelta(minutes=15),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._accounts = accounts
        self._hasher = hasher
        self._tokens = token_generator
        self._sessions = session_issuer
        self._notifier = notifier
        self._confirmation_ttl = confirmation_ttl
        self._reset_ttl = reset_ttl
        self._clock = clock

    # ------------------------------------------------------------------
    async def register(self, email: str, password: str, name: str = "") -> AccountView:
        """
        Register a new, unconfirmed account and email its confirmation link.

        Args:
            email: Email address, canonicalised before storage
            password: Plain text password
            name: Display name

        Returns:
            The created account, without credential material

        Raises:
            ValidationFailure: If email or password is malformed
            Conflict: If the email is already registered
        """
        email_clean = normalize_email(email)
        if not email_clean or "@" not in email_clean:
            raise ValidationFailure("A valid email is required.")
        self._check_password(password)

        if self._accounts.find_by_email(email_clean):
            raise Conflict()

        password_hash = await asyncio.to_thread(self._hasher.hash, password)
        pending = self._new_pending_token(TokenPurpose.CONFIRMATION)
        account = Account(
            email=email_clean,
            password_hash=password_hash,
            name=(name or "").strip(),
            pending_token=pending,
        )
        try:
            saved = self._accounts.save(account)
        except DuplicateKeyError as exc:
            # Lost the race against a concurrent registration for this email.
            raise Conflict() from exc

        logger.info("Registered account %s (%s)", saved.id, saved.email)
        await self._notify(self._notifier.send_confirmation_email, saved.email, pending.value)
        return saved.view()

    async def confirm_email(self, token: str) -> AccountView:
        """
        Confirm an account's email with its confirmation token.

        Args:
            token: Raw token from the confirmation link

        Returns:
            The confirmed account

        Raises:
            InvalidOrExpiredToken: If the token is unknown, expired, already
                used or was issued for a password reset
        """
        account = self._consumable(token, TokenPurpose.CONFIRMATION)
        saved = self._consume(account.copy(is_email_confirmed=True, pending_token=None), token)
        logger.info("Confirmed email for account %s", saved.id)
        return saved.view()

    async def validate_credentials(self, email: str, password: str) -> AccountView:
        """
        Check an email and password pair.

        Args:
            email: Account email
            password: Plain text password

        Returns:
            The matching account

        Raises:
            InvalidCredentials: If the account does not exist or the password is wrong
            EmailNotConfirmed: If the credentials match an unconfirmed account
        """
        account = self._accounts.find_by_email(normalize_email(email))
        if account is None:
            logger.info("Login rejected: unknown email")
            raise InvalidCredentials()

        valid = await asyncio.to_thread(self._hasher.verify, account.password_hash, password or "")
        if not valid:
            logger.info("Login rejected: bad password for account %s", account.id)
            raise InvalidCredentials()

        if not account.is_email_confirmed:
            raise EmailNotConfirmed()
        return account.view()

    async def login(self, email: str, password: str) -> LoginResult:
        """Validate credentials and issue a session token."""
        view = await self.validate_credentials(email, password)
        token = self._sessions.issue(view.id, view.email, view.role)
        logger.info("Login: account %s", view.id)
        return LoginResult(access_token=token)

    async def forgot_password(self, email: str) -> NotificationOutcome:
        """
        Issue a password reset token and email the reset link.

        Args:
            email: Account email

        Returns:
            TOKEN_ISSUED, or NO_OP for an unknown email. Callers must answer
            both the same way.
        """
        account = self._accounts.find_by_email(normalize_email(email))
        if account is None:
            return NotificationOutcome.NO_OP

        pending = self._new_pending_token(TokenPurpose.RESET)
        saved = self._accounts.set_pending_token(account.id, pending)
        logger.info("Issued password reset token for account %s", saved.id)
        await self._notify(self._notifier.send_password_reset_email, saved.email, pending.value)
        return NotificationOutcome.TOKEN_ISSUED

    async def resend_confirmation(self, email: str) -> NotificationOutcome:
        """Replace the confirmation token of an unconfirmed account and email it again."""
        account = self._accounts.find_by_email(normalize_email(email))
        if account is None or account.is_email_confirmed:
            return NotificationOutcome.NO_OP

        pending = self._new_pending_token(TokenPurpose.CONFIRMATION)
        try:
            saved = self._accounts.set_pending_token(account.id, pending, require_unconfirmed=True)
        except StaleTokenError:
            return NotificationOutcome.NO_OP
        await self._notify(self._notifier.send_confirmation_email, saved.email, pending.value)
        return NotificationOutcome.TOKEN_ISSUED

    async def reset_password(self, token: str, new_password: str) -> AccountView:
        """
        Replace the password using a reset token.

        Args:
            token: Raw token from the reset link
            new_password: New plain text password

        Returns:
            The updated account

        Raises:
            ValidationFailure: If the new password is malformed
            InvalidOrExpiredToken: If the token is unknown, expired, already
                used or was issued for email confirmation
        """
        self._check_password(new_password)
        account = self._consumable(token, TokenPurpose.RESET)
        password_hash = await asyncio.to_thread(self._hasher.hash, new_password)
        saved = self._consume(account.copy(password_hash=password_hash, pending_token=None), token)
        logger.info("Password reset for account %s", saved.id)
        return saved.view()

    def get_account(self, account_id: int) -> Optional[AccountView]:
        account = self._accounts.find_by_id(account_id)
        return account.view() if account else None

    async def ensure_default_account(
        self, email: Optional[str], password: Optional[str]
    ) -> Optional[AccountView]:
        if not email or not password:
            return None
        email_clean = normalize_email(email)
        existing = self._accounts.find_by_email(email_clean)
        if existing:
            return existing.view()
        self._check_password(password)
        password_hash = await asyncio.to_thread(self._hasher.hash, password)
        logger.info("Creating default account for %s", email_clean)
        saved = self._accounts.save(
            Account(
                email=email_clean,
                password_hash=password_hash,
                role="admin",
                is_email_confirmed=True,
            )
        )
        return saved.view()

    # ------------------------------------------------------------------
    def _consumable(self, token: str, purpose: TokenPurpose) -> Account:
        # Missing, wrong-purpose and expired tokens are deliberately indistinguishable.
        account = self._accounts.find_by_pending_token(token) if token else None
        pending = account.pending_token if account else None
        if (
            account is None
            or pending is None
            or pending.purpose is not purpose
            or pending.is_expired(self._clock())
        ):
            logger.info("Rejected %s token", purpose.value)
            raise InvalidOrExpiredToken()
        return account

    def _consume(self, account: Account, token: str) -> Account:
        try:
            return self._accounts.save(account, expected_token=token)
        except StaleTokenError as exc:
            raise InvalidOrExpiredToken() from exc

    def _new_pending_token(self, purpose: TokenPurpose) -> PendingToken:
        ttl = self._confirmation_ttl if purpose is TokenPurpose.CONFIRMATION else self._reset_ttl
        return PendingToken(
            purpose=purpose,
            value=self._tokens.new_token(),
            expires_at=self._clock() + ttl,
        )

    @staticmethod
    def _check_password(password: str) -> None:
        if not password:
            raise ValidationFailure("Password is required.")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationFailure(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")

    async def _notify(self, send: Callable[[str, str], bool], to: str, token: str) -> None:
        try:
            delivered = await asyncio.to_thread(send, to, token)
        except Exception:  # notifier failures never reach the caller
            logger.exception("Notifier raised while emailing %s", to)
            return
        if not delivered:
            logger.error("Notification to %s was not delivered", to)
