"""Account domain model for registration, confirmation and password reset."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional


class TokenPurpose(str, enum.Enum):
    """What an outstanding single-use token authorises."""

    CONFIRMATION = "confirmation"
    RESET = "reset"


@dataclass(frozen=True, slots=True)
class PendingToken:
    """A single-use, time-limited token tagged with its purpose."""

    purpose: TokenPurpose
    value: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        # A token expiring exactly now is still accepted.
        return self.expires_at < now


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Account:
    """
    Account entity.

    Attributes:
        id: Unique identifier, assigned by the store on first save
        email: Canonical (stripped, lower-cased) email address
        password_hash: Credential hasher digest, never plaintext
        name: Display name
        role: Free-form role tag
        is_email_confirmed: Set once by a successful confirmation
        pending_token: At most one outstanding confirmation or reset token
        created_at: Account creation timestamp
        updated_at: Last update timestamp
    """

    email: str
    password_hash: str
    name: str = ""
    role: str = "user"
    is_email_confirmed: bool = False
    pending_token: Optional[PendingToken] = None
    id: Optional[int] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def view(self) -> "AccountView":
        return AccountView(
            id=self.id,
            email=self.email,
            name=self.name,
            role=self.role,
            is_email_confirmed=self.is_email_confirmed,
            created_at=self.created_at,
        )

    def copy(self, **changes) -> "Account":
        return replace(self, **changes)

    def __repr__(self) -> str:
        return (
            f"<Account id={self.id} email={self.email} "
            f"confirmed={self.is_email_confirmed}>"
        )


@dataclass(frozen=True, slots=True)
class AccountView:
    """Outward representation of an account. Carries no credential material."""

    id: Optional[int]
    email: str
    name: str
    role: str
    is_email_confirmed: bool
    created_at: datetime
