"""
Tests for session token issuance and verification.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from account_auth.services.session_issuer import SessionIssuer


def _claims(token: str) -> dict:
    return jwt.decode(token, options={"verify_signature": False})


class TestIssue:
    def test_payload_contains_identity(self, session_issuer):
        token = session_issuer.issue(7, "a@x.com", "user")
        payload = session_issuer.verify(token)

        assert payload["sub"] == "7"
        assert payload["email"] == "a@x.com"
        assert payload["role"] == "user"
        assert payload["type"] == "access"

    def test_default_lifetime_is_one_hour(self, session_issuer):
        claims = _claims(session_issuer.issue(1, "a@x.com", "user"))
        assert claims["exp"] - claims["iat"] == 3600

    def test_pair_lifetimes(self, session_issuer):
        pair = session_issuer.issue_pair(1, "a@x.com", "user")

        access = _claims(pair["access_token"])
        refresh = _claims(pair["refresh_token"])
        assert access["exp"] - access["iat"] == 15 * 60
        assert refresh["exp"] - refresh["iat"] == 7 * 24 * 3600

    def test_refresh_token_is_not_an_access_token(self, session_issuer):
        pair = session_issuer.issue_pair(1, "a@x.com", "user")

        assert session_issuer.verify(pair["refresh_token"]) is None
        assert session_issuer.verify(pair["refresh_token"], token_type="refresh")["sub"] == "1"
        assert session_issuer.verify(pair["access_token"])["sub"] == "1"

    def test_requires_secret(self):
        with pytest.raises(RuntimeError):
            SessionIssuer(secret_key="")


class TestVerifyFailsClosed:
    def test_expired_token(self):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        issuer = SessionIssuer(secret_key="test-secret", clock=lambda: past)
        token = issuer.issue(1, "a@x.com", "user")

        assert issuer.verify(token) is None

    def test_signature_mismatch(self, session_issuer):
        other = SessionIssuer(secret_key="rotated-secret")
        token = other.issue(1, "a@x.com", "user")

        assert session_issuer.verify(token) is None

    def test_tampered_payload(self, session_issuer):
        header, payload, signature = session_issuer.issue(1, "a@x.com", "user").split(".")
        forged = jwt.encode(
            {"sub": "2", "email": "b@x.com", "role": "admin", "type": "access",
             "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "guess",
            algorithm="HS256",
        ).split(".")[1]

        assert session_issuer.verify(f"{header}.{forged}.{signature}") is None

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_token(self, session_issuer, token):
        assert session_issuer.verify(token) is None

    def test_missing_subject(self, session_issuer):
        token = jwt.encode(
            {"email": "a@x.com", "type": "access",
             "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "test-secret",
            algorithm="HS256",
        )
        assert session_issuer.verify(token) is None
