"""Domain models for the account authentication service."""

from .account import Account, AccountView, PendingToken, TokenPurpose

__all__ = [
    "Account",
    "AccountView",
    "PendingToken",
    "TokenPurpose",
]
