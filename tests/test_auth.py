"""
Tests for session tokens and operator password hashes.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from sharepool.auth.jwt import ALGORITHM, create_access_token, verify_token
from sharepool.config import settings
from sharepool.utils.password import hash_password, needs_rehash, verify_password


# ── tokens ────────────────────────────────────────────────


class TestTokens:
    def test_round_trip(self):
        token = create_access_token(7, "accountant")
        assert verify_token(token) == {"user_id": 7, "role": "accountant"}

    def test_expired(self):
        token = create_access_token(7, "admin", expires_delta=timedelta(seconds=-1))
        assert verify_token(token) is None

    def test_garbage(self):
        assert verify_token("not.a.token") is None

    def test_unknown_role_rejected(self):
        token = create_access_token(7, "owner")
        assert verify_token(token) is None

    def test_foreign_issuer_rejected(self):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "7", "role": "admin", "iss": "elsewhere", "iat": now, "exp": now + timedelta(hours=1)},
            settings.secret_key,
            algorithm=ALGORITHM,
        )
        assert verify_token(token) is None


# ── passwords ─────────────────────────────────────────────


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("test_password_123")

        assert hashed != "test_password_123"
        assert verify_password("test_password_123", hashed)
        assert not verify_password("wrong_password", hashed)
        assert not needs_rehash(hashed)

    def test_empty_password_refused(self):
        with pytest.raises(ValueError):
            hash_password("")

    def test_missing_or_broken_hash(self):
        assert not verify_password("anything", None)
        assert not verify_password("anything", "not-a-bcrypt-hash")
