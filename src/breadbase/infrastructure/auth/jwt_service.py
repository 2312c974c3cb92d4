"""Signed operator tokens.

API callers authenticate with an HS256 JWT. Its ``permissions`` claim
lists the abilities the capability check grants; ``*`` grants all of
them. Tokens are issued by the ``breadbase create-token`` command.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from breadbase.core.config import get_settings

ACCESS_TOKEN_TYPE = "access"
REQUIRED_CLAIMS = ("exp", "iat", "sub", "user_id")


class JWTError(Exception):
    """A bearer token could not be used."""


class TokenExpiredError(JWTError):
    pass


class InvalidTokenError(JWTError):
    """Bad signature, wrong issuer, missing claim or wrong token type."""


class JWTService:
    """Issues and checks operator access tokens.

    Args:
        secret_key: Signing key. Falls back to ``settings.secret_key`` so
            the module-level instance follows configuration changes.
        leeway: Seconds of clock skew tolerated on ``exp`` and ``iat``.
    """

    ALGORITHM = "HS256"
    ISSUER = "breadbase"

    def __init__(self, secret_key: str | None = None, leeway: int = 0) -> None:
        self._secret_key = secret_key
        self.leeway = leeway

    @property
    def secret_key(self) -> str:
        return self._secret_key or get_settings().secret_key

    def create_access_token(
        self,
        user_id: str,
        permissions: list[str],
        expires_delta: timedelta | None = None,
    ) -> str:
        """Sign a token granting ``permissions`` to ``user_id``.

        ``expires_delta`` defaults to ``access_token_expire_minutes``.
        """
        lifetime = expires_delta
        if lifetime is None:
            lifetime = timedelta(minutes=get_settings().access_token_expire_minutes)

        issued_at = datetime.now(timezone.utc)
        claims = {
            "iss": self.ISSUER,
            "sub": user_id,
            "user_id": user_id,
            "permissions": sorted(set(permissions)),
            "type": ACCESS_TOKEN_TYPE,
            "iat": issued_at,
            "exp": issued_at + lifetime,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.ALGORITHM)

    def decode_token(self, token: str) -> dict[str, Any]:
        """Verify signature, issuer and lifetime, and return the claims.

        Raises:
            TokenExpiredError: ``exp`` is in the past.
            InvalidTokenError: Anything else PyJWT rejects.
        """
        try:
            return jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.ALGORITHM],
                issuer=self.ISSUER,
                leeway=self.leeway,
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(str(e) or "Invalid token") from e

    def validate_access_token(self, token: str) -> dict[str, Any]:
        claims = self.decode_token(token)
        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError("Not an access token")
        return claims

    @staticmethod
    def permissions_of(claims: dict[str, Any]) -> list[str]:
        permissions = claims.get("permissions") or []
        if not isinstance(permissions, list):
            raise InvalidTokenError("permissions claim must be a list")
        return [str(permission) for permission in permissions]


jwt_service = JWTService()
