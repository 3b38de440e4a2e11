"""Error taxonomy for the authentication core and its store."""

from __future__ import annotations


class AuthError(Exception):
    """Base class for failures surfaced to callers of the auth service."""

    default_message = "Authentication error."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationFailure(AuthError):
    default_message = "Invalid input."


class Conflict(AuthError):
    default_message = "Email already registered."


class InvalidOrExpiredToken(AuthError):
    default_message = "Invalid or expired token."


class EmailNotConfirmed(AuthError):
    default_message = "Email not confirmed. Please confirm your email first."


class InvalidCredentials(AuthError):
    default_message = "Invalid email or password."

    def __init__(self) -> None:
        # Same message whether the account is missing or the password is wrong.
        super().__init__(self.default_message)


class StorageFailure(AuthError):
    default_message = "Storage failure."


class PersistenceError(Exception):
    """Base class for signals raised by account store implementations."""


class DuplicateKeyError(PersistenceError):
    """A unique constraint (email) was violated."""


class StaleTokenError(PersistenceError):
    """A conditional save found the pending token already consumed or replaced."""


class StorageError(PersistenceError, StorageFailure):
    """Any other persistence failure."""
