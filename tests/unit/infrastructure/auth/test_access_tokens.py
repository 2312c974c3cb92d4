"""Unit tests for JWTService."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from breadbase.infrastructure.auth import (
    InvalidTokenError,
    JWTService,
    TokenExpiredError,
)

SECRET = "test-secret-key-with-enough-length-for-hs256"


@pytest.fixture
def service() -> JWTService:
    return JWTService(secret_key=SECRET)


def signed(claims: dict) -> str:
    return jwt.encode(claims, SECRET, algorithm="HS256")


class TestJWTService:
    def test_create_access_token_claims(self, service):
        token = service.create_access_token("operator", ["browse_database", "browse_database"])

        decoded = jwt.decode(token, SECRET, algorithms=["HS256"], issuer="breadbase")
        assert decoded["sub"] == "operator"
        assert decoded["user_id"] == "operator"
        assert decoded["permissions"] == ["browse_database"]
        assert decoded["type"] == "access"
        assert decoded["exp"] > decoded["iat"]

    def test_validate_access_token(self, service):
        token = service.create_access_token("operator", ["*"])

        claims = service.validate_access_token(token)

        assert service.permissions_of(claims) == ["*"]

    def test_expired_token(self, service):
        token = service.create_access_token("operator", [], expires_delta=timedelta(seconds=-1))

        with pytest.raises(TokenExpiredError):
            service.decode_token(token)

    def test_leeway_accepts_small_skew(self):
        service = JWTService(secret_key=SECRET, leeway=30)
        token = service.create_access_token("operator", [], expires_delta=timedelta(seconds=-5))

        assert service.decode_token(token)["sub"] == "operator"

    def test_wrong_secret(self, service):
        token = JWTService(secret_key="another-secret-key-with-enough-length").create_access_token(
            "operator", []
        )

        with pytest.raises(InvalidTokenError):
            service.decode_token(token)

    def test_missing_required_claim(self, service):
        token = signed({"iss": "breadbase", "sub": "operator", "type": "access"})

        with pytest.raises(InvalidTokenError):
            service.decode_token(token)

    def test_non_access_token_is_rejected(self, service):
        now = datetime.now(timezone.utc)
        token = signed({
            "iss": "breadbase",
            "sub": "operator",
            "user_id": "operator",
            "type": "refresh",
            "iat": now,
            "exp": now + timedelta(minutes=5),
        })

        with pytest.raises(InvalidTokenError, match="Not an access token"):
            service.validate_access_token(token)

    def test_permissions_claim_must_be_a_list(self, service):
        with pytest.raises(InvalidTokenError):
            service.permissions_of({"permissions": "browse_database"})

        assert service.permissions_of({}) == []
