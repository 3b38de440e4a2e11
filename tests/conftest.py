"""
Shared fixtures: in-memory store, controllable clock, recording notifier.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from account_auth.application.services.auth_service import AuthService
from account_auth.infrastructure.persistence.sqlite import SQLiteAccountRepository
from account_auth.services.credential_hasher import CredentialHasher
from account_auth.services.session_issuer import SessionIssuer
from account_auth.services.token_generator import TokenGenerator

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository():
    repo = SQLiteAccountRepository(":memory:")
    yield repo
    repo.close()


@pytest.fixture
def hasher():
    return CredentialHasher(rounds=4)


@pytest.fixture
def session_issuer():
    return SessionIssuer(secret_key="test-secret")


@pytest.fixture
def notifier():
    mock = MagicMock()
    mock.send.return_value = True
    mock.send_confirmation_email.return_value = True
    mock.send_password_reset_email.return_value = True
    return mock


@pytest.fixture
def service(repository, hasher, session_issuer, notifier, clock):
    return AuthService(
        accounts=repository,
        hasher=hasher,
        token_generator=TokenGenerator(),
        session_issuer=session_issuer,
        notifier=notifier,
        clock=clock,
    )
