"""
Conduit Backend: Token and Password Services
=============================================

What:  JWT issuing/verification (PyJWT) and password hashing (argon2-cffi).
How:   Both are plain objects built from Settings by `create_app()` and kept
       on `app.state`; nothing here reads configuration from module state.
Who:   TokenService is used by the auth dependencies and UserService;
       PasswordHasher by UserService for register, login and update.

Token Format:
    HS256-signed JWT with claims
        sub       user id (string)
        username  username at issue time
        iat, exp  issue time and expiry (now + jwt_expire_days)
        iss       settings.jwt_issuer
    Clients send it as `Authorization: Token <jwt>`.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError

from conduit.config import Settings
from conduit.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    """Decoded, validated token payload."""

    user_id: int
    username: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """
    Issues and verifies the API's bearer tokens.

    Example:
        tokens = TokenService(settings)
        token = tokens.issue(user)
        claims = tokens.decode(token)   # claims.user_id == user.id
    """

    def __init__(self, settings: Settings):
        self.secret_key = settings.jwt_secret_key
        self.algorithm = settings.jwt_algorithm
        self.expire_delta = timedelta(days=settings.jwt_expire_days)
        self.issuer = settings.jwt_issuer

    def issue(self, user: Any, now: Optional[datetime] = None) -> str:
        """Sign a token for `user` (anything with `id` and `username`)."""
        issued_at = now or datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": str(user.id),
            "username": user.username,
            "iat": issued_at,
            "exp": issued_at + self.expire_delta,
            "iss": self.issuer,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> TokenClaims:
        """
        Verify signature, expiry and issuer, then return the claims.

        Raises:
            AuthenticationError: Expired, tampered, malformed or foreign token.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("has expired") from e
        except jwt.InvalidTokenError as e:
            logger.info("Rejected token: %s", e)
            raise AuthenticationError() from e

        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError) as e:
            raise AuthenticationError() from e

        return TokenClaims(
            user_id=user_id,
            username=str(payload.get("username", "")),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


class PasswordHasher:
    """Argon2id password hashing."""

    def __init__(self, **argon2_options: Any):
        self._hasher = Argon2Hasher(**argon2_options)

    def hash(self, password: str) -> str:
        return self._hasher.hash(password)

    def verify(self, password_hash: str, password: str) -> bool:
        """True if `password` matches; False on mismatch or unreadable hash."""
        try:
            return self._hasher.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            return False
