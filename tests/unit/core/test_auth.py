"""
Tests for bearer token verification.

WHY: Every ledger endpoint is keyed by the token's subject, so token
handling must:
1. Round-trip the user id and role claims
2. Reject expired tokens and bad signatures
3. Reject tokens without a subject
"""

from datetime import datetime, timedelta

import pytest
from jose import jwt

from subledger.core.auth import (
    ADMIN_ROLE,
    USER_ROLE,
    create_access_token,
    user_from_token,
    verify_token,
)
from subledger.core.config import settings
from subledger.core.exceptions import TokenExpiredError, TokenInvalidError


class TestTokens:
    """Test token creation and verification."""

    def test_token_contains_claims(self):
        payload = verify_token(create_access_token("user-42", role=ADMIN_ROLE))

        assert payload["sub"] == "user-42"
        assert payload["role"] == ADMIN_ROLE
        assert "exp" in payload

    def test_user_from_token(self):
        user = user_from_token(create_access_token("user-42"))

        assert user.user_id == "user-42"
        assert user.role == USER_ROLE
        assert user.is_admin is False

    def test_admin_role(self):
        assert user_from_token(create_access_token("root", role=ADMIN_ROLE)).is_admin is True

    def test_expired_token_rejected(self):
        token = create_access_token("user-42", expires_delta=timedelta(seconds=-10))

        with pytest.raises(TokenExpiredError):
            verify_token(token)

    def test_wrong_signature_rejected(self):
        token = jwt.encode(
            {"sub": "user-42", "exp": datetime.utcnow() + timedelta(minutes=5)},
            "not-the-secret",
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(TokenInvalidError):
            verify_token(token)

    def test_malformed_token_rejected(self):
        with pytest.raises(TokenInvalidError):
            verify_token("not.a.jwt")

    def test_missing_subject_rejected(self):
        token = jwt.encode(
            {"role": USER_ROLE, "exp": datetime.utcnow() + timedelta(minutes=5)},
            settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
        )

        with pytest.raises(TokenInvalidError):
            user_from_token(token)
