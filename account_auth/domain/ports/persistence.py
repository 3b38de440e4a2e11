from __future__ import annotations

from typing import Optional, Protocol

from ..models import Account, PendingToken


class AccountRepository(Protocol):
    """Abstract storage for accounts.

    ``save`` raises ``DuplicateKeyError`` when the email is already taken and
    ``StorageError`` for any other failure. When ``expected_token`` is given
    the update only applies if the stored pending token still has that value,
    otherwise ``StaleTokenError`` is raised.
    """

    def find_by_email(self, email: str) -> Optional[Account]:
        ...

    def find_by_pending_token(self, token: str) -> Optional[Account]:
        ...

    def find_by_id(self, account_id: int) -> Optional[Account]:
        ...

    def save(self, account: Account, *, expected_token: Optional[str] = None) -> Account:
        ...

    def set_pending_token(
        self, account_id: int, token: PendingToken, *, require_unconfirmed: bool = False
    ) -> Account:
        """Write only the pending token. Raises ``StaleTokenError`` when
        ``require_unconfirmed`` is set and the account is already confirmed."""
        ...
